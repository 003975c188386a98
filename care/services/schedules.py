"""
Medication schedules.

A medication task carries one schedule row per time of day the medicine
is taken.  Times arrive either as ``"HH:MM[:SS]"`` strings or as the
``{"hour", "minute", "period"}`` mapping the 12-hour pickers produce.
"""
from __future__ import annotations

import datetime
from typing import Any, Iterable, Mapping

from django.db import transaction

from care.models import MedicationTask, MedicationTaskSchedule


class ScheduleConflict(ValueError):
    """Two schedule times of the same medication collide."""


def parse_time(value: Any) -> datetime.time:
    """Normalize a schedule time to ``datetime.time`` (minute precision)."""
    if isinstance(value, datetime.time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, Mapping):
        try:
            hour = int(value['hour'])
            minute = int(value['minute'])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid time: {value!r}") from e
        period = value.get('period')
        if period not in ('AM', 'PM'):
            raise ValueError(f"invalid period: {period!r}")
        if not (1 <= hour <= 12) or not (0 <= minute <= 59):
            raise ValueError(f"invalid time: {value!r}")
        if period == 'AM' and hour == 12:
            hour = 0
        elif period == 'PM' and hour != 12:
            hour += 12
        return datetime.time(hour, minute)
    if isinstance(value, str) and ':' in value:
        parts = value.strip().split(':')
        try:
            hour, minute = int(parts[0]), int(parts[1])
            return datetime.time(hour, minute)
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid time: {value!r}") from e
    raise ValueError(f"unsupported time format: {value!r}")


def unique_times(values: Iterable[Any]) -> list[datetime.time]:
    """Parse ``values`` and reject duplicates."""
    seen: set[datetime.time] = set()
    out: list[datetime.time] = []
    for raw in values:
        t = parse_time(raw)
        if t in seen:
            raise ScheduleConflict(
                'There are conflicting times. Please ensure all times are unique.'
            )
        seen.add(t)
        out.append(t)
    return out


@transaction.atomic
def add_schedule_times(medication: MedicationTask, times: Iterable[Any]) -> list[MedicationTaskSchedule]:
    """Insert one untaken schedule per new time; clashes with existing rows fail."""
    existing = list(medication.schedules.values_list('time', flat=True))
    parsed = unique_times([*existing, *times])[len(existing):]
    return MedicationTaskSchedule.objects.bulk_create([
        MedicationTaskSchedule(medication_task=medication, time=t, is_taken=False)
        for t in parsed
    ])


def set_taken(schedule: MedicationTaskSchedule, taken: bool) -> MedicationTaskSchedule:
    schedule.is_taken = taken
    schedule.save(update_fields=['is_taken'])
    return schedule


def format_schedule(schedule: MedicationTaskSchedule) -> dict:
    return {
        'id': schedule.id,
        'medicationTaskId': schedule.medication_task_id,
        'time': schedule.time.strftime('%H:%M'),
        'isTaken': schedule.is_taken,
    }
