"""
Task variants.

A task is one of five variants keyed by :class:`~care.models.TaskType`.
Each variant is a frozen dataclass that validates itself on
construction, so a payload that reaches :func:`persist_variant` is
already consistent; the detail row written for it is always the one
matching ``Task.type``.
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field, asdict
from typing import Any, ClassVar, Optional, Union

from django.core.exceptions import ValidationError
from django.db import transaction

from care.models import (
    AppointmentTask,
    ExerciseTask,
    MedicationTask,
    Task,
    TaskType,
    TreatmentTask,
)
from care.services.schedules import ScheduleConflict, add_schedule_times, format_schedule, unique_times

MIN_DOSAGE_MG = 0.1
MAX_DOSAGE_MG = 1000


@dataclass(frozen=True)
class GeneralDetails:
    task_type: ClassVar[str] = TaskType.GENERAL


@dataclass(frozen=True)
class AppointmentDetails:
    task_type: ClassVar[str] = TaskType.APPOINTMENT

    appointment_date: datetime.datetime
    purpose: str
    doctor_id: Optional[int] = None
    doctors_notes: str = ''

    def __post_init__(self):
        if not (self.purpose or '').strip():
            raise ValidationError({'purpose': 'Purpose is required'})


@dataclass(frozen=True)
class MedicationDetails:
    task_type: ClassVar[str] = TaskType.MEDICATION

    name: str
    dosage: float
    medicine_color: str = ''
    instructions: str = ''
    start_date: Optional[datetime.datetime] = None
    end_date: Optional[datetime.datetime] = None
    times: tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.dosage, (int, float)) or isinstance(self.dosage, bool):
            raise ValidationError({'dosage': 'Dosage is required'})
        if not (MIN_DOSAGE_MG <= self.dosage <= MAX_DOSAGE_MG):
            raise ValidationError(
                {'dosage': f'Dosage must be between {MIN_DOSAGE_MG} and {MAX_DOSAGE_MG} mg'}
            )
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({'startDate': 'Start date must be less than end date'})
        try:
            parsed = tuple(unique_times(self.times))
        except ValueError as e:
            raise ValidationError({'times': str(e)}) from e
        object.__setattr__(self, 'times', parsed)


@dataclass(frozen=True)
class TreatmentDetails:
    task_type: ClassVar[str] = TaskType.TREATMENT

    treatment_type: str
    date: datetime.datetime
    medical_institution_id: Optional[int] = None
    dosage: Optional[float] = None

    def __post_init__(self):
        if not (self.treatment_type or '').strip():
            raise ValidationError({'treatmentType': 'Treatment type is required'})
        if self.dosage is not None and self.dosage < 0:
            raise ValidationError({'dosage': 'Dosage cannot be negative'})


@dataclass(frozen=True)
class ExerciseDetails:
    task_type: ClassVar[str] = TaskType.EXERCISE

    name: str
    sets: int = 0
    reps: int = 0
    duration_per_set: Optional[float] = None
    duration_per_rep: Optional[float] = None

    def __post_init__(self):
        if self.sets < 0 or self.reps < 0:
            raise ValidationError('Sets and reps cannot be negative')
        for name in ('duration_per_set', 'duration_per_rep'):
            v = getattr(self, name)
            if v is not None and v < 0:
                raise ValidationError({name: 'Duration cannot be negative'})


TaskDetails = Union[GeneralDetails, AppointmentDetails, MedicationDetails, TreatmentDetails, ExerciseDetails]

VARIANTS: dict[str, type] = {
    TaskType.GENERAL: GeneralDetails,
    TaskType.APPOINTMENT: AppointmentDetails,
    TaskType.MEDICATION: MedicationDetails,
    TaskType.TREATMENT: TreatmentDetails,
    TaskType.EXERCISE: ExerciseDetails,
}

DETAIL_MODELS = {
    TaskType.APPOINTMENT: (AppointmentTask, 'appointment'),
    TaskType.MEDICATION: (MedicationTask, 'medication'),
    TaskType.TREATMENT: (TreatmentTask, 'treatment'),
    TaskType.EXERCISE: (ExerciseTask, 'exercise'),
}

# camelCase request key -> dataclass field
_FIELD_KEYS = {
    TaskType.APPOINTMENT: {
        'appointmentDate': 'appointment_date', 'purpose': 'purpose',
        'doctorId': 'doctor_id', 'doctorsNotes': 'doctors_notes',
    },
    TaskType.MEDICATION: {
        'name': 'name', 'dosage': 'dosage', 'medicineColor': 'medicine_color',
        'instructions': 'instructions', 'startDate': 'start_date', 'endDate': 'end_date',
        'times': 'times',
    },
    TaskType.TREATMENT: {
        'treatmentType': 'treatment_type', 'date': 'date',
        'medicalInstitutionId': 'medical_institution_id', 'dosage': 'dosage',
    },
    TaskType.EXERCISE: {
        'name': 'name', 'sets': 'sets', 'reps': 'reps',
        'durationPerSet': 'duration_per_set', 'durationPerRep': 'duration_per_rep',
    },
    TaskType.GENERAL: {},
}


def details_from_data(task_type: str, data: dict[str, Any]) -> TaskDetails:
    """Build the variant for ``task_type`` from camelCase request data."""
    cls = VARIANTS.get(task_type)
    if cls is None:
        raise ValidationError({'type': f'unknown task type {task_type!r}'})
    kwargs = {attr: data[key] for key, attr in _FIELD_KEYS[task_type].items() if key in data and data[key] is not None}
    if 'times' in kwargs:
        kwargs['times'] = tuple(kwargs['times'])
    try:
        return cls(**kwargs)
    except TypeError as e:
        # missing required variant field
        raise ValidationError({'details': f'incomplete {task_type.lower()} details: {e}'}) from e


def _detail_fields(details: TaskDetails) -> dict[str, Any]:
    values = asdict(details)
    values.pop('times', None)
    return values


@transaction.atomic
def persist_variant(task: Task, details: TaskDetails):
    """Create or update the detail row of ``task`` from ``details``.

    Returns the detail model instance, or ``None`` for general tasks.
    """
    if task.type != details.task_type:
        raise ValidationError(
            f"{type(details).__name__} does not match task type {task.type}"
        )
    if task.type == TaskType.GENERAL:
        return None
    model, _ = DETAIL_MODELS[task.type]
    row, _ = model.objects.update_or_create(task=task, defaults=_detail_fields(details))
    if isinstance(details, MedicationDetails) and details.times:
        try:
            add_schedule_times(row, details.times)
        except ScheduleConflict as e:
            raise ValidationError({'times': str(e)}) from e
    return row


def detail_row(task: Task):
    """Return the detail row matching ``task.type`` or ``None``."""
    entry = DETAIL_MODELS.get(task.type)
    if entry is None:
        return None
    _, accessor = entry
    return getattr(task, accessor, None)


def variant_for(task: Task) -> TaskDetails:
    """Read a task's detail row back into its variant."""
    if task.type == TaskType.GENERAL:
        return GeneralDetails()
    row = detail_row(task)
    if row is None:
        raise ValidationError(f"task {task.id} has no {task.type.lower()} details")
    cls = VARIANTS[task.type]
    values = {attr: getattr(row, attr) for attr in _FIELD_KEYS[task.type].values() if attr != 'times'}
    if isinstance(row, MedicationTask):
        values['times'] = tuple(row.schedules.values_list('time', flat=True))
    return cls(**values)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def format_details(task: Task) -> Optional[dict]:
    row = detail_row(task)
    if row is None:
        return None
    if isinstance(row, AppointmentTask):
        return {
            'id': row.id,
            'doctorId': row.doctor_id,
            'doctorName': row.doctor.user.display_name() if row.doctor else None,
            'appointmentDate': _iso(row.appointment_date),
            'purpose': row.purpose,
            'doctorsNotes': row.doctors_notes,
        }
    if isinstance(row, MedicationTask):
        return {
            'id': row.id,
            'name': row.name,
            'medicineColor': row.medicine_color,
            'dosage': row.dosage,
            'instructions': row.instructions,
            'startDate': _iso(row.start_date),
            'endDate': _iso(row.end_date),
            'schedules': [format_schedule(s) for s in row.schedules.all()],
        }
    if isinstance(row, TreatmentTask):
        return {
            'id': row.id,
            'medicalInstitutionId': row.medical_institution_id,
            'treatmentType': row.treatment_type,
            'date': _iso(row.date),
            'dosage': row.dosage,
        }
    return {
        'id': row.id,
        'name': row.name,
        'sets': row.sets,
        'reps': row.reps,
        'durationPerSet': row.duration_per_set,
        'durationPerRep': row.duration_per_rep,
    }


def updated_details(task: Task, data: dict[str, Any]) -> Optional[TaskDetails]:
    """Current variant of ``task`` with the camelCase fields in ``data`` applied.

    Returns ``None`` when ``data`` touches no variant field.  Schedule
    times are edited through their own endpoints and are ignored here.
    """
    keys = {k: attr for k, attr in _FIELD_KEYS[task.type].items() if k != 'times'}
    if not any(k in data for k in keys):
        return None
    values = asdict(variant_for(task))
    values.pop('times', None)
    for key, attr in keys.items():
        if key in data:
            values[attr] = data[key]
    return VARIANTS[task.type](**values)
