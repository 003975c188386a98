"""
Task list refresh notifications.

Clients connect to ``ws/task-lists/<id>/?token=<access>``.  The consumer
only pushes ``refresh`` events after task changes; it never mutates state.
Close codes: 4001 bad path or token, 4003 not a member, 4004 no such list.
"""
import json
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from care.authentication import decode_access_token
from care.models import TaskList, User
from care.services.memberships import get_membership, is_admin
from care.services.tasklists import group_name


def _user_for_token(raw):
    token = decode_access_token(raw)
    if token is None:
        return None
    return User.objects.filter(id=token.payload.get('user_id'), is_active=True).first()


def _is_member(user, task_list) -> bool:
    return is_admin(user) or get_membership(user, task_list) is not None


class TaskListConsumer(AsyncWebsocketConsumer):
    async def connect(self):
        try:
            self.task_list_id = int(self.scope["url_route"]["kwargs"].get("task_list_id"))
        except (TypeError, ValueError):
            await self.close(code=4001)
            return

        query = parse_qs((self.scope.get("query_string") or b"").decode())
        raw = (query.get("token") or [None])[0]
        user = await sync_to_async(_user_for_token)(raw)
        if user is None:
            await self.close(code=4001)
            return

        try:
            task_list = await sync_to_async(TaskList.objects.get)(id=self.task_list_id)
        except TaskList.DoesNotExist:
            await self.close(code=4004)
            return

        if not await sync_to_async(_is_member)(user, task_list):
            await self.close(code=4003)
            return

        self.group_name = group_name(self.task_list_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # push-only channel
        if text_data:
            await self.send(json.dumps({"type": "error", "code": 4002, "message": "unsupported_type"}))

    async def tasklist_refresh(self, event):
        await self.send(json.dumps({
            "type": "refresh",
            "taskListId": event.get("taskListId"),
            "views": event.get("views", []),
        }))
