import datetime

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from care.models import (
    AppointmentTask,
    CancerType,
    Comment,
    Doctor,
    ListMembership,
    ListPermission,
    MedicalInstitution,
    MedicalStaff,
    MedicationTaskSchedule,
    Patient,
    Task,
    TaskList,
    TaskType,
    UserType,
    Vitals,
)
from care.tests.helpers import bearer, make_user

pytestmark = pytest.mark.django_db


def client_for(user) -> APIClient:
    return bearer(APIClient(), user)


def future(days=3):
    return (timezone.now() + datetime.timedelta(days=days)).isoformat()


# ---------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------
def test_anonymous_is_unauthorized(api, task_list):
    assert api.get('/api/task-lists').status_code == 401


def test_untyped_user_is_forbidden(task_list):
    res = client_for(make_user('fresh@example.com')).get('/api/task-lists')
    assert res.status_code == 403


def test_lists_show_permission(patient_user, caretaker_user, task_list):
    res = client_for(patient_user).get('/api/task-lists')
    assert res.status_code == 200
    assert [(tl['id'], tl['permission']) for tl in res.json()] == [(task_list.id, ListPermission.MANAGER)]

    res = client_for(caretaker_user).get(f'/api/task-lists/{task_list.id}')
    assert res.status_code == 200
    assert res.json()['canManage'] is False


def test_outsider_cannot_read_tasks(outsider, task_list):
    res = client_for(outsider).get(f'/api/task-lists/{task_list.id}/tasks')
    assert res.status_code == 403
    assert res.json()['ok'] is False


# ---------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------
def test_manager_creates_general_task(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'Hydrate', 'priority': 'HIGH', 'dueDate': future(),
    }, format='json')
    assert res.status_code == 201, res.content
    body = res.json()
    assert body['type'] == TaskType.GENERAL
    assert body['taskCreatorId'] == patient_user.id
    assert body['details'] is None


def test_member_cannot_create_task(caretaker_user, task_list):
    res = client_for(caretaker_user).post(f'/api/task-lists/{task_list.id}/tasks', {'title': 'x'}, format='json')
    assert res.status_code == 403
    assert not Task.objects.exists()


def test_past_due_date_rejected(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'late', 'dueDate': (timezone.now() - datetime.timedelta(days=1)).isoformat(),
    }, format='json')
    assert res.status_code == 400


def test_create_medication_task_with_schedules(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'Anti-nausea', 'type': TaskType.MEDICATION, 'name': 'Ondansetron', 'dosage': 8,
        'times': ['08:00', {'hour': 8, 'minute': 0, 'period': 'PM'}],
    }, format='json')
    assert res.status_code == 201, res.content
    details = res.json()['details']
    assert details['name'] == 'Ondansetron'
    assert [s['time'] for s in details['schedules']] == ['08:00', '20:00']


def test_medication_dosage_out_of_range(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'bad', 'type': TaskType.MEDICATION, 'name': 'x', 'dosage': 5000,
    }, format='json')
    assert res.status_code == 400
    assert not Task.objects.exists()


def test_medication_null_dosage_update_rejected(patient_user, task_list):
    client = client_for(patient_user)
    res = client.post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'Steroids', 'type': TaskType.MEDICATION, 'name': 'Dexamethasone', 'dosage': 4,
    }, format='json')
    task_id = res.json()['id']

    res = client.put(f'/api/tasks/{task_id}', {'dosage': None}, format='json')
    assert res.status_code == 400, res.content
    assert Task.objects.get(pk=task_id).medication.dosage == 4


def test_incomplete_variant_rejected(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'visit', 'type': TaskType.APPOINTMENT,
    }, format='json')
    assert res.status_code == 400


def test_task_views_respect_archive_privacy(patient_user, caretaker_user, task_list, make_task):
    make_task('open')
    make_task('done', is_done=True, finish_date=timezone.now())
    make_task('done and archived', is_done=True, is_archived=True)
    make_task('shelved', is_archived=True)
    make_task('caretaker shelved', is_archived=True, task_creator=caretaker_user)

    def titles(user, view):
        res = client_for(user).get(f'/api/task-lists/{task_list.id}/tasks', {'view': view})
        assert res.status_code == 200
        assert res.json()['view'] == view
        return sorted(t['title'] for t in res.json()['tasks'])

    assert titles(patient_user, 'active') == ['open']
    assert titles(patient_user, 'completed') == ['done', 'done and archived']
    assert titles(caretaker_user, 'completed') == ['done']
    assert titles(patient_user, 'archived') == ['shelved']
    assert titles(caretaker_user, 'archived') == ['caretaker shelved']


def test_unknown_view_rejected(patient_user, task_list):
    res = client_for(patient_user).get(f'/api/task-lists/{task_list.id}/tasks', {'view': 'everything'})
    assert res.status_code == 400


def test_complete_blocked_by_prerequisite(caretaker_user, make_task):
    prerequisite = make_task('Task 5')
    task = make_task('Task 10', prerequisite_task=prerequisite)
    client = client_for(caretaker_user)

    res = client.post(f'/api/tasks/{task.id}/complete')
    assert res.status_code == 409
    assert res.json()['prerequisiteTaskId'] == prerequisite.id
    task.refresh_from_db()
    assert task.is_done is False

    assert client.post(f'/api/tasks/{prerequisite.id}/complete').status_code == 200
    res = client.post(f'/api/tasks/{task.id}/complete')
    assert res.status_code == 200
    assert res.json()['task']['isDone'] is True


def test_complete_cascades_and_undo(patient_user, make_task):
    parent = make_task('Task 20')
    child_a = make_task('Task 21', parent_task=parent)
    child_b = make_task('Task 22', parent_task=parent)
    client = client_for(patient_user)

    res = client.post(f'/api/tasks/{parent.id}/complete')
    assert res.status_code == 200
    assert sorted(res.json()['cascadedTaskIds']) == sorted([child_a.id, child_b.id])

    res = client.post(f'/api/tasks/{parent.id}/undo-complete')
    assert res.status_code == 200
    assert res.json()['task']['isDone'] is False
    child_a.refresh_from_db()
    assert child_a.is_done is True


def test_outsider_cannot_complete(outsider, make_task):
    task = make_task('private')
    assert client_for(outsider).post(f'/api/tasks/{task.id}/complete').status_code == 403


def test_related_tasks(patient_user, make_task):
    prerequisite = make_task('first')
    task = make_task('second', prerequisite_task=prerequisite)
    make_task('sub', parent_task=task)

    res = client_for(patient_user).get(f'/api/tasks/{task.id}/related')
    assert res.status_code == 200
    body = res.json()
    assert body['prerequisite']['id'] == prerequisite.id
    assert [t['title'] for t in body['subtasks']] == ['sub']


def test_task_update_and_type_change(patient_user, make_task):
    task = make_task('old title')
    client = client_for(patient_user)

    res = client.put(f'/api/tasks/{task.id}', {'title': 'new title', 'priority': 'LOW'}, format='json')
    assert res.status_code == 200, res.content
    assert res.json()['title'] == 'new title'

    res = client.put(f'/api/tasks/{task.id}', {'type': TaskType.EXERCISE}, format='json')
    assert res.status_code == 400


def test_self_prerequisite_rejected(patient_user, make_task):
    task = make_task('loop')
    res = client_for(patient_user).put(f'/api/tasks/{task.id}', {'prerequisiteTaskId': task.id}, format='json')
    assert res.status_code == 400


def test_prerequisite_cycle_rejected(patient_user, make_task):
    first = make_task('first')
    second = make_task('second', prerequisite_task=first)
    third = make_task('third', prerequisite_task=second)

    res = client_for(patient_user).put(f'/api/tasks/{first.id}', {'prerequisiteTaskId': third.id}, format='json')
    assert res.status_code == 400, res.content
    first.refresh_from_db()
    assert first.prerequisite_task_id is None


def test_parent_cycle_rejected(patient_user, make_task):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)
    grandchild = make_task('grandchild', parent_task=child)

    res = client_for(patient_user).put(f'/api/tasks/{parent.id}', {'parentTaskId': grandchild.id}, format='json')
    assert res.status_code == 400, res.content
    parent.refresh_from_db()
    assert parent.parent_task_id is None


def test_prerequisite_chain_without_cycle_accepted(patient_user, make_task):
    first = make_task('first')
    second = make_task('second', prerequisite_task=first)
    third = make_task('third')

    res = client_for(patient_user).put(f'/api/tasks/{third.id}', {'prerequisiteTaskId': second.id}, format='json')
    assert res.status_code == 200, res.content
    assert res.json()['prerequisiteTaskId'] == second.id


def test_member_deletes_only_own_task(caretaker_user, make_task):
    theirs = make_task('patient task')
    mine = make_task('mine', task_creator=caretaker_user)
    client = client_for(caretaker_user)

    assert client.delete(f'/api/tasks/{theirs.id}').status_code == 403
    assert client.delete(f'/api/tasks/{mine.id}').status_code == 204
    assert list(Task.objects.values_list('title', flat=True)) == ['patient task']


# ---------------------------------------------------------------------
# Comments, tags, schedules
# ---------------------------------------------------------------------
def test_comments_flow(patient_user, caretaker_user, make_task):
    task = make_task('t')
    res = client_for(caretaker_user).post(f'/api/tasks/{task.id}/comments', {'content': '<b>Took it</b>'}, format='json')
    assert res.status_code == 201
    comment_id = res.json()['id']
    assert res.json()['content'] == 'Took it'

    patient = client_for(patient_user)
    assert [c['id'] for c in patient.get(f'/api/tasks/{task.id}/comments').json()] == [comment_id]
    assert patient.put(f'/api/comments/{comment_id}', {'content': 'edited'}, format='json').status_code == 403
    assert patient.delete(f'/api/comments/{comment_id}').status_code == 204
    assert not Comment.objects.exists()


def test_tags_strip_hash(caretaker_user, make_task):
    task = make_task('t')
    res = client_for(caretaker_user).post(f'/api/tasks/{task.id}/tags', {'value': '#daily', 'color': 'blue'}, format='json')
    assert res.status_code == 201
    assert res.json()['value'] == 'daily'


def test_schedule_permissions(patient_user, caretaker_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'pills', 'type': TaskType.MEDICATION, 'name': 'x', 'dosage': 1, 'times': ['08:00'],
    }, format='json')
    medication_id = res.json()['details']['id']
    schedule = MedicationTaskSchedule.objects.get()
    caretaker = client_for(caretaker_user)

    res = caretaker.post(f'/api/schedules/{schedule.id}/taken')
    assert res.status_code == 200
    assert res.json()['isTaken'] is True
    assert caretaker.post(f'/api/schedules/{schedule.id}/undo-taken').json()['isTaken'] is False

    res = caretaker.post(f'/api/medication-tasks/{medication_id}/schedules', {'times': ['12:00']}, format='json')
    assert res.status_code == 403

    manager = client_for(patient_user)
    res = manager.post(f'/api/medication-tasks/{medication_id}/schedules', {'times': ['8:00']}, format='json')
    assert res.status_code == 400
    res = manager.post(f'/api/medication-tasks/{medication_id}/schedules', {'times': ['12:00']}, format='json')
    assert res.status_code == 201
    assert manager.delete(f'/api/schedules/{schedule.id}').status_code == 204


# ---------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------
def test_manager_invites_by_email(patient_user, outsider, task_list):
    client = client_for(patient_user)
    res = client.post(f'/api/task-lists/{task_list.id}/members', {'email': 'OUT@example.com'}, format='json')
    assert res.status_code == 201, res.content
    assert res.json()['permission'] == ListPermission.MEMBER

    members = client.get(f'/api/task-lists/{task_list.id}/members').json()
    assert {m['email'] for m in members} == {'pat@example.com', 'out@example.com'}

    res = client.post(f'/api/task-lists/{task_list.id}/members', {'email': 'out@example.com'}, format='json')
    assert res.status_code == 400


def test_invite_unknown_user(patient_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/members',
                                        {'email': 'nobody@example.com'}, format='json')
    assert res.status_code == 404


def test_member_cannot_invite(caretaker_user, outsider, task_list):
    res = client_for(caretaker_user).post(f'/api/task-lists/{task_list.id}/members',
                                          {'userId': outsider.id}, format='json')
    assert res.status_code == 403


def test_manager_updates_and_removes_membership(patient_user, caretaker_user, task_list):
    membership = ListMembership.objects.get(user=caretaker_user)
    client = client_for(patient_user)

    res = client.put(f'/api/memberships/{membership.id}', {'permission': ListPermission.MANAGER}, format='json')
    assert res.status_code == 200
    assert res.json()['permission'] == ListPermission.MANAGER

    res = client.put(f'/api/memberships/{membership.id}',
                     {'startDate': '2030-01-10', 'endDate': '2030-01-01'}, format='json')
    assert res.status_code == 400

    assert client.delete(f'/api/memberships/{membership.id}').status_code == 204
    assert client_for(caretaker_user).get(f'/api/task-lists/{task_list.id}').status_code == 403


def test_patient_membership_cannot_be_demoted_or_removed(patient_user, caretaker_user, task_list):
    ListMembership.objects.filter(user=caretaker_user).update(permission=ListPermission.MANAGER)
    owner = ListMembership.objects.get(user=patient_user, task_list=task_list)
    client = client_for(caretaker_user)

    res = client.put(f'/api/memberships/{owner.id}', {'permission': ListPermission.MEMBER}, format='json')
    assert res.status_code == 403
    assert client.delete(f'/api/memberships/{owner.id}').status_code == 403
    owner.refresh_from_db()
    assert owner.permission == ListPermission.MANAGER


# ---------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------
def test_vital_readings_batch(patient_user, caretaker_user, outsider, task_list):
    heart = Vitals.objects.create(name='Heart rate', unit_of_measure='bpm')
    temp = Vitals.objects.create(name='Body temperature', unit_of_measure='°C')
    patient_id = patient_user.patient.id

    res = client_for(patient_user).post('/api/vital-readings', {
        'timestamp': timezone.now().isoformat(),
        'readings': [{'vitalsId': heart.id, 'value': 72}, {'vitalsId': temp.id, 'value': 37.1}],
    }, format='json')
    assert res.status_code == 201, res.content
    assert len(res.json()) == 2

    res = client_for(caretaker_user).get('/api/vital-readings', {'patientId': patient_id})
    assert res.status_code == 200
    assert {r['vitalsName'] for r in res.json()} == {'Heart rate', 'Body temperature'}

    res = client_for(outsider).get('/api/vital-readings', {'patientId': patient_id})
    assert res.status_code == 403


def test_vital_readings_reject_duplicates(patient_user):
    heart = Vitals.objects.create(name='Heart rate', unit_of_measure='bpm')
    res = client_for(patient_user).post('/api/vital-readings', {
        'timestamp': timezone.now().isoformat(),
        'readings': [{'vitalsId': heart.id, 'value': 72}, {'vitalsId': heart.id, 'value': 75}],
    }, format='json')
    assert res.status_code == 400


def test_journal_entries_and_tags(patient_user, caretaker_user):
    client = client_for(patient_user)
    res = client.post('/api/journal-entries', {'title': 'Day 1', 'content': 'Tired after chemo', 'mood': 'low'},
                      format='json')
    assert res.status_code == 201
    entry_id = res.json()['id']

    res = client.post(f'/api/journal-entries/{entry_id}/tags', {'value': '#fatigue'}, format='json')
    assert res.status_code == 201

    assert [e['id'] for e in client.get('/api/journal-entries', {'tag': '#fatigue'}).json()] == [entry_id]
    assert client.get('/api/journal-entries', {'tag': 'joy'}).json() == []
    assert client_for(caretaker_user).get('/api/journal-entries').status_code == 403


# ---------------------------------------------------------------------
# Clinical forms
# ---------------------------------------------------------------------
def test_only_assigned_doctor_writes_notes(patient_user, doctor_user, task_list):
    res = client_for(patient_user).post(f'/api/task-lists/{task_list.id}/tasks', {
        'title': 'Oncology visit', 'type': TaskType.APPOINTMENT, 'purpose': 'Follow-up',
        'appointmentDate': future(), 'doctorId': doctor_user.doctor.id,
    }, format='json')
    assert res.status_code == 201, res.content
    appointment = AppointmentTask.objects.get()

    other = make_user('other-doc@example.com', UserType.DOCTOR)
    Doctor.objects.create(user=other, license_number='LIC-2')
    url = f'/api/appointments/{appointment.id}/notes'
    assert client_for(other).post(url, {'doctorsNotes': 'hi'}, format='json').status_code == 403

    res = client_for(doctor_user).post(url, {'doctorsNotes': 'Bloodwork looks good'}, format='json')
    assert res.status_code == 200
    assert res.json()['task']['details']['doctorsNotes'] == 'Bloodwork looks good'


def test_staff_treatment_requires_manager_grant(patient_user, task_list):
    institution = MedicalInstitution.objects.create(name='Cancer Centre', phone='555-0100')
    staff_user = make_user('staff@example.com', UserType.MEDICAL_STAFF)
    MedicalStaff.objects.create(user=staff_user, medical_institution=institution)
    payload = {
        'patientId': patient_user.patient.id, 'title': 'Radiation', 'treatmentType': 'Radiotherapy',
        'date': future(7), 'dosage': 2.0,
    }
    client = client_for(staff_user)

    assert client.post('/api/treatments', payload, format='json').status_code == 403

    ListMembership.objects.create(user=staff_user, task_list=task_list, permission=ListPermission.MANAGER)
    res = client.post('/api/treatments', payload, format='json')
    assert res.status_code == 201, res.content
    assert res.json()['details']['treatmentType'] == 'Radiotherapy'
    assert [t['title'] for t in client.get('/api/treatments').json()] == ['Radiation']


def test_denied_treatment_leaves_patient_untouched():
    institution = MedicalInstitution.objects.create(name='Cancer Centre', phone='555-0100')
    staff_user = make_user('staff@example.com', UserType.MEDICAL_STAFF)
    MedicalStaff.objects.create(user=staff_user, medical_institution=institution)
    patient = Patient.objects.create(user=make_user('listless@example.com', UserType.PATIENT))

    res = client_for(staff_user).post('/api/treatments', {
        'patientId': patient.id, 'title': 'Chemo', 'treatmentType': 'Chemotherapy', 'date': future(7),
    }, format='json')
    assert res.status_code == 403
    assert not TaskList.objects.filter(patient=patient).exists()
    assert not ListMembership.objects.filter(user=staff_user).exists()


# ---------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------
def test_reference_data_admin_writes(doctor_user):
    admin = make_user('admin@example.com', UserType.ADMIN)
    assert client_for(doctor_user).post('/api/cancer-types', {'name': 'Sarcoma'}, format='json').status_code == 403

    res = client_for(admin).post('/api/cancer-types', {'name': 'Sarcoma'}, format='json')
    assert res.status_code == 201
    assert client_for(admin).post('/api/cancer-types', {'name': 'Sarcoma'}, format='json').status_code == 400
    assert [c['name'] for c in client_for(doctor_user).get('/api/cancer-types').json()] == ['Sarcoma']
    assert CancerType.objects.count() == 1
