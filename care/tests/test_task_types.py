import datetime

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from care.models import ExerciseTask, MedicationTask, TaskType
from care.services.schedules import ScheduleConflict, add_schedule_times, parse_time, unique_times
from care.services.task_types import (
    AppointmentDetails,
    ExerciseDetails,
    GeneralDetails,
    MedicationDetails,
    TreatmentDetails,
    details_from_data,
    format_details,
    persist_variant,
    updated_details,
    variant_for,
)

WHEN = timezone.make_aware(datetime.datetime(2030, 1, 15, 10, 0))


@pytest.mark.parametrize('raw,expected', [
    ('08:30', datetime.time(8, 30)),
    ('21:05:59', datetime.time(21, 5)),
    ({'hour': 12, 'minute': 0, 'period': 'AM'}, datetime.time(0, 0)),
    ({'hour': 12, 'minute': 15, 'period': 'PM'}, datetime.time(12, 15)),
    ({'hour': '7', 'minute': '45', 'period': 'PM'}, datetime.time(19, 45)),
    (datetime.time(6, 10, 30), datetime.time(6, 10)),
])
def test_parse_time(raw, expected):
    assert parse_time(raw) == expected


@pytest.mark.parametrize('raw', [
    'noon', '25:00', {'hour': 13, 'minute': 0, 'period': 'PM'}, {'hour': 9, 'minute': 0}, 930,
])
def test_parse_time_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_time(raw)


def test_unique_times_rejects_equal_times_in_any_format():
    with pytest.raises(ScheduleConflict):
        unique_times(['20:00', {'hour': 8, 'minute': 0, 'period': 'PM'}])


def test_medication_dosage_bounds():
    assert MedicationDetails(name='Tamoxifen', dosage=20).dosage == 20
    with pytest.raises(ValidationError):
        MedicationDetails(name='Tamoxifen', dosage=0)
    with pytest.raises(ValidationError):
        MedicationDetails(name='Tamoxifen', dosage=1000.5)


def test_medication_dates_must_be_ordered():
    with pytest.raises(ValidationError):
        MedicationDetails(name='x', dosage=1, start_date=WHEN, end_date=WHEN - datetime.timedelta(days=1))


def test_medication_times_are_parsed_and_unique():
    details = MedicationDetails(name='x', dosage=1, times=('08:00', '20:00'))
    assert details.times == (datetime.time(8), datetime.time(20))
    with pytest.raises(ValidationError):
        MedicationDetails(name='x', dosage=1, times=('08:00', '8:00'))


def test_other_variants_validate_themselves():
    with pytest.raises(ValidationError):
        AppointmentDetails(appointment_date=WHEN, purpose='  ')
    with pytest.raises(ValidationError):
        TreatmentDetails(treatment_type='', date=WHEN)
    with pytest.raises(ValidationError):
        ExerciseDetails(name='walk', sets=-1)


def test_details_from_data_maps_camel_case():
    details = details_from_data(TaskType.EXERCISE, {'name': 'Stretch', 'sets': 3, 'reps': 10, 'durationPerSet': 1.5})
    assert details == ExerciseDetails(name='Stretch', sets=3, reps=10, duration_per_set=1.5)


def test_details_from_data_missing_required_field():
    with pytest.raises(ValidationError):
        details_from_data(TaskType.MEDICATION, {'name': 'no dosage'})


def test_details_from_data_unknown_type():
    with pytest.raises(ValidationError):
        details_from_data('SURGERY', {})


@pytest.mark.django_db
class TestPersistence:
    def test_variant_must_match_task_type(self, make_task):
        task = make_task('walk', type=TaskType.EXERCISE)
        with pytest.raises(ValidationError):
            persist_variant(task, GeneralDetails())

    def test_detail_row_pins_task_type(self, make_task):
        task = make_task('general')
        with pytest.raises(ValidationError):
            ExerciseTask.objects.create(task=task, name='walk')

    def test_medication_round_trip_with_schedules(self, make_task):
        task = make_task('pills', type=TaskType.MEDICATION)
        persist_variant(task, MedicationDetails(name='Ondansetron', dosage=8, times=('08:00', '20:00')))

        task.refresh_from_db()
        variant = variant_for(task)
        assert variant.name == 'Ondansetron'
        assert sorted(variant.times) == [datetime.time(8), datetime.time(20)]
        payload = format_details(task)
        assert [s['time'] for s in payload['schedules']] == ['08:00', '20:00']
        assert not any(s['isTaken'] for s in payload['schedules'])

    def test_new_schedule_time_cannot_clash(self, make_task):
        task = make_task('pills', type=TaskType.MEDICATION)
        row = persist_variant(task, MedicationDetails(name='x', dosage=1, times=('08:00',)))
        with pytest.raises(ScheduleConflict):
            add_schedule_times(row, [{'hour': 8, 'minute': 0, 'period': 'AM'}])
        assert row.schedules.count() == 1

    def test_updated_details_merges_changes(self, make_task):
        task = make_task('pills', type=TaskType.MEDICATION)
        persist_variant(task, MedicationDetails(name='x', dosage=1, times=('08:00',)))
        task.refresh_from_db()

        assert updated_details(task, {'title': 'only a task field'}) is None
        merged = updated_details(task, {'dosage': 5, 'times': ['09:00']})
        persist_variant(task, merged)

        row = MedicationTask.objects.get(task=task)
        assert row.dosage == 5
        assert row.name == 'x'
        assert list(row.schedules.values_list('time', flat=True)) == [datetime.time(8)]
