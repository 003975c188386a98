import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from care.authentication import issue_tokens
from care.services.tasklists import group_name
from companion.asgi import websocket_urlpatterns

application = URLRouter(websocket_urlpatterns)


def _url(task_list_id, user=None):
    url = f'/ws/task-lists/{task_list_id}/'
    if user is not None:
        url += f'?token={issue_tokens(user).access_token}'
    return url


def _connect(url):
    async def scenario():
        communicator = WebsocketCommunicator(application, url)
        connected, code = await communicator.connect()
        if connected:
            await communicator.disconnect()
        return connected, code
    return async_to_sync(scenario)()


@pytest.mark.django_db(transaction=True)
def test_member_receives_refresh(caretaker_user, task_list):
    # token issuing writes to the blacklist tables, so it stays out of the event loop
    url = _url(task_list.id, caretaker_user)

    async def scenario():
        communicator = WebsocketCommunicator(application, url)
        connected, _ = await communicator.connect()
        assert connected
        await get_channel_layer().group_send(group_name(task_list.id), {
            'type': 'tasklist.refresh', 'taskListId': task_list.id, 'views': ['active'],
        })
        message = await communicator.receive_json_from()
        await communicator.disconnect()
        return message

    message = async_to_sync(scenario)()
    assert message == {'type': 'refresh', 'taskListId': task_list.id, 'views': ['active']}


@pytest.mark.django_db(transaction=True)
def test_missing_token_is_rejected(task_list):
    assert _connect(_url(task_list.id)) == (False, 4001)


@pytest.mark.django_db(transaction=True)
def test_non_member_is_rejected(outsider, task_list):
    assert _connect(_url(task_list.id, outsider)) == (False, 4003)


@pytest.mark.django_db(transaction=True)
def test_unknown_list_is_rejected(patient_user, task_list):
    assert _connect(_url(task_list.id + 100, patient_user)) == (False, 4004)
