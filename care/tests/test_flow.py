"""
End-to-end care team flow.

A patient signs up, onboards, builds a task list and invites a
caretaker, who then works through the list.  Uses DRF's APITestCase so
every step goes through the real URL routing, authentication and
exception handling.
"""

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from care.models import Caretaker, ListPermission, Task, User, UserType
from care.tests.helpers import PASSWORD


class CareTeamFlowTests(APITestCase):
    def setUp(self) -> None:
        self.patient_client = APIClient()
        self.caretaker_client = APIClient()
        self.caretaker = User.objects.create_user(
            email='carer@example.com', password=PASSWORD, user_type=UserType.CARETAKER,
        )
        Caretaker.objects.create(user=self.caretaker, relationship_to_patient='FAMILY')

    def _sign_in(self, client: APIClient, email: str) -> dict:
        res = client.post('/api/auth/sign-in', {'email': email, 'password': PASSWORD}, format='json')
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.content)
        data = res.json()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")
        return data

    def _onboard_patient(self) -> int:
        res = self.patient_client.post('/api/auth/sign-up', {
            'email': 'patient@example.com', 'password': PASSWORD,
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.content)
        self.patient_client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.json()['jwt_access']}")

        res = self.patient_client.post('/onboarding', {
            'userType': UserType.PATIENT, 'firstName': 'Robin', 'lastName': 'Lee', 'cancerStage': 'STAGE_I',
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.content)
        self.patient_client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.json()['jwt_access']}")

        lists = self.patient_client.get('/api/task-lists').json()
        self.assertEqual(len(lists), 1)
        self.assertEqual(lists[0]['permission'], ListPermission.MANAGER)
        return lists[0]['id']

    def test_patient_builds_list_and_caretaker_completes(self):
        list_id = self._onboard_patient()

        res = self.patient_client.post(f'/api/task-lists/{list_id}/tasks', {'title': 'Book scan'}, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        scan_id = res.json()['id']
        res = self.patient_client.post(f'/api/task-lists/{list_id}/tasks', {
            'title': 'Attend scan', 'prerequisiteTaskId': scan_id,
        }, format='json')
        attend_id = res.json()['id']
        res = self.patient_client.post(f'/api/task-lists/{list_id}/tasks', {
            'title': 'Arrange lift', 'parentTaskId': attend_id,
        }, format='json')
        lift_id = res.json()['id']

        res = self.patient_client.post(f'/api/task-lists/{list_id}/members', {
            'email': 'carer@example.com',
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)

        self._sign_in(self.caretaker_client, 'carer@example.com')
        res = self.caretaker_client.post(f'/api/tasks/{attend_id}/complete')
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.json()['prerequisiteTaskId'], scan_id)

        self.assertEqual(self.caretaker_client.post(f'/api/tasks/{scan_id}/complete').status_code, status.HTTP_200_OK)
        res = self.caretaker_client.post(f'/api/tasks/{attend_id}/complete')
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.json()['cascadedTaskIds'], [lift_id])
        self.assertTrue(Task.objects.get(pk=lift_id).is_done)

        completed = self.patient_client.get(f'/api/task-lists/{list_id}/tasks', {'view': 'completed'}).json()
        self.assertEqual({t['id'] for t in completed['tasks']}, {scan_id, attend_id, lift_id})
        detail = self.patient_client.get(f'/api/task-lists/{list_id}').json()
        self.assertEqual(detail['completedTasksCount'], 3)
        self.assertEqual(detail['uncompletedTasksCount'], 0)

    def test_caretaker_cannot_create_tasks_on_patient_list(self):
        list_id = self._onboard_patient()
        self.patient_client.post(f'/api/task-lists/{list_id}/members', {'email': 'carer@example.com'}, format='json')

        self._sign_in(self.caretaker_client, 'carer@example.com')
        res = self.caretaker_client.post(f'/api/task-lists/{list_id}/tasks', {'title': 'sneaky'}, format='json')
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Task.objects.filter(title='sneaky').exists())
