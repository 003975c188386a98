import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from care.models import Caretaker, Doctor, ListMembership, ListPermission, Patient, Task, UserType
from care.services.tasklists import ensure_task_list
from care.tests.helpers import make_user


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and OAuth state live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def patient_user(db):
    user = make_user('pat@example.com', UserType.PATIENT, first_name='Pat', last_name='Ient')
    patient = Patient.objects.create(user=user)
    ensure_task_list(patient)
    return user


@pytest.fixture
def task_list(patient_user):
    return patient_user.patient.task_lists.get()


@pytest.fixture
def caretaker_user(db, task_list):
    user = make_user('care@example.com', UserType.CARETAKER)
    Caretaker.objects.create(user=user)
    ListMembership.objects.create(user=user, task_list=task_list, permission=ListPermission.MEMBER)
    return user


@pytest.fixture
def doctor_user(db):
    user = make_user('doc@example.com', UserType.DOCTOR, first_name='Dana', last_name='House')
    Doctor.objects.create(user=user, license_number='LIC-1')
    return user


@pytest.fixture
def outsider(db):
    return make_user('out@example.com', UserType.CARETAKER)


@pytest.fixture
def make_task(task_list, patient_user):
    def _make(title='task', **fields):
        fields.setdefault('task_list', task_list)
        fields.setdefault('task_creator', patient_user)
        return Task.objects.create(title=title, **fields)
    return _make


@pytest.fixture
def api():
    return APIClient()
