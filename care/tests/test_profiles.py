import pytest
from rest_framework.test import APIClient

from care.models import Address, CancerType, UserType
from care.tests.helpers import bearer, make_user

pytestmark = pytest.mark.django_db


def client_for(user) -> APIClient:
    return bearer(APIClient(), user)


def test_profile_update_person_fields(patient_user):
    client = client_for(patient_user)
    res = client.post('/api/profile', {'phone': '555-0101', 'middleName': '<i>Q</i>'}, format='json')
    assert res.status_code == 200, res.content
    body = res.json()
    assert body['user']['phone'] == '555-0101'
    assert body['user']['middleName'] == 'Q'
    assert body['user']['firstName'] == 'Pat'


def test_patient_profile_roundtrip(patient_user):
    cancer = CancerType.objects.create(name='Lymphoma')
    client = client_for(patient_user)

    res = client.post('/api/profile/patient', {'cancerTypeId': cancer.id, 'cancerStage': 'STAGE_III',
                                               'diagnosisDate': '2024-02-01'}, format='json')
    assert res.status_code == 200, res.content
    res = client.get('/api/profile/patient')
    assert res.json()['cancerType'] == 'Lymphoma'
    assert res.json()['diagnosisDate'] == '2024-02-01'


def test_profile_rejects_unknown_reference(patient_user):
    res = client_for(patient_user).post('/api/profile/patient', {'cancerTypeId': 999}, format='json')
    assert res.status_code == 400


def test_typed_profile_is_type_restricted(doctor_user):
    assert client_for(doctor_user).get('/api/profile/patient').status_code == 403
    assert client_for(doctor_user).get('/api/profile/doctor').json()['licenseNumber'] == 'LIC-1'


def test_addresses_are_private(patient_user, caretaker_user):
    client = client_for(patient_user)
    res = client.post('/api/addresses', {
        'addressLineOne': '1 Main St', 'city': 'Toronto', 'province': 'ON',
        'postalCode': 'M5V 1A1', 'country': 'Canada', 'type': 'CURRENT',
    }, format='json')
    assert res.status_code == 201, res.content
    address_id = res.json()['id']

    assert client_for(caretaker_user).delete(f'/api/addresses/{address_id}').status_code == 404
    res = client.put(f'/api/addresses/{address_id}', {'city': 'Ottawa'}, format='json')
    assert res.json()['city'] == 'Ottawa'
    assert client.delete(f'/api/addresses/{address_id}').status_code == 204
    assert not Address.objects.exists()


def test_patient_dashboard(patient_user, make_task):
    make_task('upcoming')
    res = client_for(patient_user).get('/patient')
    assert res.status_code == 200
    body = res.json()
    assert [t['title'] for t in body['upcomingTasks']] == ['upcoming']
    assert body['taskLists'][0]['permission'] == 'MANAGER'


def test_caretaker_dashboard_lists_memberships(caretaker_user, task_list):
    res = client_for(caretaker_user).get('/caretaker')
    assert res.status_code == 200
    assert [tl['id'] for tl in res.json()['taskLists']] == [task_list.id]


def test_admin_dashboard_counts_users(patient_user, caretaker_user):
    admin = make_user('admin@example.com', UserType.ADMIN)
    make_user('untyped@example.com')
    res = client_for(admin).get('/admin')
    assert res.status_code == 200
    users = res.json()['users']
    assert users['PATIENT'] == 1
    assert users['CARETAKER'] == 1
    assert users['UNTYPED'] == 1
