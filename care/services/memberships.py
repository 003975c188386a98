"""
List membership and the task permission gate.

Every mutation of a task list goes through :class:`AuthorizedTaskService`,
which can only be built from a :class:`ListGrant`.  A grant is issued by
:func:`authorize` after checking that the user holds an effective
membership on the list, i.e. one whose ``start_date``/``end_date`` window
contains today (a null bound is open).  ADMIN users are implicit managers
of every list.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError as DRFValidationError

from care.models import (
    Comment,
    ListMembership,
    ListPermission,
    MedicationTask,
    MedicationTaskSchedule,
    Task,
    TaskList,
    TaskTag,
    User,
    UserType,
)
from care.services import tasks as task_service
from care.services.audit import log_action
from care.services.schedules import add_schedule_times, set_taken
from care.services.task_types import TaskDetails, persist_variant
from care.services.tasklists import broadcast_refresh, refresh_counts

logger = logging.getLogger(__name__)

TASK_FIELDS = ('title', 'description', 'priority', 'due_date', 'is_archived',
               'prerequisite_task', 'parent_task')


def is_admin(user) -> bool:
    return getattr(user, 'user_type', None) == UserType.ADMIN


def _today(on: Optional[datetime.date]) -> datetime.date:
    return on or timezone.localdate()


def effective_memberships(user: User, *, on: Optional[datetime.date] = None) -> QuerySet:
    day = _today(on)
    return ListMembership.objects.filter(user=user).filter(
        Q(start_date__isnull=True) | Q(start_date__lte=day),
        Q(end_date__isnull=True) | Q(end_date__gte=day),
    )


def get_membership(user: User, task_list: TaskList, *, on: Optional[datetime.date] = None) -> Optional[ListMembership]:
    """Effective membership of ``user`` on ``task_list`` or ``None``."""
    if not getattr(user, 'pk', None):
        return None
    return effective_memberships(user, on=on).filter(task_list=task_list).first()


@dataclass(frozen=True)
class ListGrant:
    """Verified permission of one user on one task list."""
    user_id: int
    task_list_id: int
    permission: str

    @property
    def is_manager(self) -> bool:
        return self.permission == ListPermission.MANAGER


def authorize(user: User, task_list: TaskList, *, on: Optional[datetime.date] = None) -> ListGrant:
    """Issue a grant for ``user`` on ``task_list`` or raise ``PermissionDenied``."""
    if is_admin(user):
        return ListGrant(user.id, task_list.id, ListPermission.MANAGER)
    membership = get_membership(user, task_list, on=on)
    if membership is None:
        raise PermissionDenied('You are not a member of this task list')
    return ListGrant(user.id, task_list.id, membership.permission)


def can_manage(user: User, task_list: TaskList) -> bool:
    try:
        return authorize(user, task_list).is_manager
    except PermissionDenied:
        return False


def permission_for(user: User, task_list: TaskList) -> Optional[str]:
    try:
        return authorize(user, task_list).permission
    except PermissionDenied:
        return None


def can_access_patient(user: User, patient) -> bool:
    """The patient, admins, and members of one of the patient's task lists."""
    if is_admin(user) or patient.user_id == user.id:
        return True
    return effective_memberships(user).filter(task_list__patient=patient).exists()


def _related_in_list(task_list_id: int, task_id: Optional[int], field: str) -> Optional[Task]:
    if task_id in (None, ''):
        return None
    related = Task.objects.filter(id=task_id).first()
    if related is None:
        raise DRFValidationError({field: f'Task {task_id} does not exist'})
    if related.task_list_id != task_list_id:
        raise DRFValidationError({field: 'Related task must belong to the same task list'})
    return related


def _chain_reaches(start: Optional[Task], task_id: int, attr: str) -> bool:
    """Follow ``attr`` links from ``start`` and report whether ``task_id`` is reached."""
    seen: set[int] = set()
    current_id = start.id if start is not None else None
    while current_id is not None and current_id not in seen:
        if current_id == task_id:
            return True
        seen.add(current_id)
        current_id = Task.objects.filter(id=current_id).values_list(attr, flat=True).first()
    return False


def _protect_owner(membership: ListMembership) -> None:
    if membership.user_id == membership.task_list.patient.user_id:
        raise PermissionDenied("The patient's own membership cannot be changed")


class AuthorizedTaskService:
    """Task list mutations for the holder of ``grant``.

    MANAGER: create/update/delete any task, manage members and medication
    schedules.  MEMBER: complete/undo, tags, comments, and edit/delete of
    tasks they created.
    """

    def __init__(self, grant: ListGrant):
        if not isinstance(grant, ListGrant):
            raise TypeError('AuthorizedTaskService requires a ListGrant')
        self.grant = grant

    # -- checks -------------------------------------------------------------

    def _require_manager(self, action: str) -> None:
        if not self.grant.is_manager:
            raise PermissionDenied(f'Only list managers may {action}')

    def _require_in_list(self, task_list_id: int) -> None:
        if task_list_id != self.grant.task_list_id:
            raise PermissionDenied('Task does not belong to this task list')

    def _require_owner_or_manager(self, task: Task, action: str) -> None:
        self._require_in_list(task.task_list_id)
        if self.grant.is_manager or task.task_creator_id == self.grant.user_id:
            return
        raise PermissionDenied(f'Only list managers or the task creator may {action}')

    @property
    def actor(self) -> User:
        return User.objects.get(pk=self.grant.user_id)

    # -- tasks --------------------------------------------------------------

    @transaction.atomic
    def create_task(self, *, details: TaskDetails, title: str, **fields: Any) -> Task:
        self._require_manager('create tasks')
        due = fields.get('due_date')
        if due is not None and due < timezone.now():
            raise DRFValidationError({'dueDate': 'Due date cannot be in the past'})
        prerequisite = _related_in_list(self.grant.task_list_id, fields.pop('prerequisite_task_id', None), 'prerequisiteTaskId')
        parent = _related_in_list(self.grant.task_list_id, fields.pop('parent_task_id', None), 'parentTaskId')
        task = Task.objects.create(
            task_list_id=self.grant.task_list_id,
            title=title,
            type=details.task_type,
            prerequisite_task=prerequisite,
            parent_task=parent,
            task_creator_id=self.grant.user_id,
            **{k: v for k, v in fields.items() if k in TASK_FIELDS},
        )
        persist_variant(task, details)
        refresh_counts(task.task_list)
        log_action(user=self.actor, action='task_create', object_type='task', object_id=task.id,
                   detail={'type': task.type, 'taskListId': task.task_list_id})
        broadcast_refresh(task.task_list_id)
        return task

    @transaction.atomic
    def update_task(self, task: Task, *, details: Optional[TaskDetails] = None, **fields: Any) -> Task:
        self._require_owner_or_manager(task, 'edit this task')
        if 'prerequisite_task_id' in fields:
            task.prerequisite_task = _related_in_list(task.task_list_id, fields.pop('prerequisite_task_id'), 'prerequisiteTaskId')
            if task.prerequisite_task_id == task.id:
                raise DRFValidationError({'prerequisiteTaskId': 'A task cannot be its own prerequisite'})
            if _chain_reaches(task.prerequisite_task, task.id, 'prerequisite_task_id'):
                raise DRFValidationError({'prerequisiteTaskId': 'Prerequisites cannot form a cycle'})
        if 'parent_task_id' in fields:
            task.parent_task = _related_in_list(task.task_list_id, fields.pop('parent_task_id'), 'parentTaskId')
            if task.parent_task_id == task.id:
                raise DRFValidationError({'parentTaskId': 'A task cannot be its own parent'})
            if _chain_reaches(task.parent_task, task.id, 'parent_task_id'):
                raise DRFValidationError({'parentTaskId': 'A task cannot be nested under its own subtask'})
        for name, value in fields.items():
            if name in TASK_FIELDS:
                setattr(task, name, value)
        task.save()
        if details is not None:
            persist_variant(task, details)
        broadcast_refresh(task.task_list_id)
        return task

    @transaction.atomic
    def delete_task(self, task: Task) -> None:
        self._require_owner_or_manager(task, 'delete this task')
        task_id, task_list = task.id, task.task_list
        task.delete()
        refresh_counts(task_list)
        log_action(user=self.actor, action='task_delete', object_type='task', object_id=task_id,
                   detail={'taskListId': task_list.id})
        broadcast_refresh(task_list.id)

    def complete_task(self, task: Task, **kwargs: Any) -> task_service.CompletionResult:
        self._require_in_list(task.task_list_id)
        result = task_service.complete_task(task, **kwargs)
        log_action(user=self.actor, action='task_complete', object_type='task', object_id=task.id,
                   detail={'cascaded': result.cascaded_ids})
        return result

    def undo_complete(self, task: Task, **kwargs: Any) -> Task:
        self._require_in_list(task.task_list_id)
        task = task_service.undo_complete(task, **kwargs)
        log_action(user=self.actor, action='task_undo_complete', object_type='task', object_id=task.id)
        return task

    # -- tags & comments ----------------------------------------------------

    def add_tag(self, task: Task, *, value: str, color: str = '') -> TaskTag:
        self._require_in_list(task.task_list_id)
        return TaskTag.objects.create(task=task, value=value, color=color, created_by_id=self.grant.user_id)

    def remove_tag(self, tag: TaskTag) -> None:
        self._require_in_list(tag.task.task_list_id)
        tag.delete()

    def add_comment(self, task: Task, *, content: str) -> Comment:
        self._require_in_list(task.task_list_id)
        return Comment.objects.create(task=task, author_id=self.grant.user_id, content=content)

    def update_comment(self, comment: Comment, *, content: str) -> Comment:
        self._require_in_list(comment.task.task_list_id)
        if comment.author_id != self.grant.user_id:
            raise PermissionDenied('Only the author may edit a comment')
        comment.content = content
        comment.save(update_fields=['content'])
        return comment

    def delete_comment(self, comment: Comment) -> None:
        self._require_in_list(comment.task.task_list_id)
        if comment.author_id != self.grant.user_id and not self.grant.is_manager:
            raise PermissionDenied('Only the author or a list manager may delete a comment')
        comment.delete()

    # -- medication schedules -----------------------------------------------

    def add_schedules(self, medication: MedicationTask, times) -> list[MedicationTaskSchedule]:
        self._require_manager('edit medication schedules')
        self._require_in_list(medication.task.task_list_id)
        try:
            return add_schedule_times(medication, times)
        except ValueError as e:
            raise DRFValidationError({'times': str(e)}) from e

    def delete_schedule(self, schedule: MedicationTaskSchedule) -> None:
        self._require_manager('edit medication schedules')
        self._require_in_list(schedule.medication_task.task.task_list_id)
        schedule.delete()

    def mark_taken(self, schedule: MedicationTaskSchedule, taken: bool = True) -> MedicationTaskSchedule:
        self._require_in_list(schedule.medication_task.task.task_list_id)
        return set_taken(schedule, taken)

    # -- members ------------------------------------------------------------

    @transaction.atomic
    def invite_member(self, user: User, *, permission: str = ListPermission.MEMBER,
                      start_date=None, end_date=None) -> ListMembership:
        self._require_manager('manage members')
        if ListMembership.objects.filter(user=user, task_list_id=self.grant.task_list_id).exists():
            raise DRFValidationError({'userId': 'User is already a member of this task list'})
        membership = ListMembership(
            user=user, task_list_id=self.grant.task_list_id, permission=permission,
            start_date=start_date, end_date=end_date,
        )
        membership.full_clean(exclude=['user', 'task_list'])
        membership.save()
        log_action(user=self.actor, action='member_invite', object_type='membership', object_id=membership.id,
                   detail={'userId': user.id, 'permission': permission})
        return membership

    @transaction.atomic
    def update_membership(self, membership: ListMembership, **fields: Any) -> ListMembership:
        self._require_manager('manage members')
        self._require_in_list(membership.task_list_id)
        _protect_owner(membership)
        for name in ('permission', 'start_date', 'end_date'):
            if name in fields:
                setattr(membership, name, fields[name])
        membership.full_clean(exclude=['user', 'task_list'])
        membership.save()
        log_action(user=self.actor, action='member_update', object_type='membership', object_id=membership.id,
                   detail={'permission': membership.permission})
        return membership

    @transaction.atomic
    def remove_member(self, membership: ListMembership) -> None:
        self._require_manager('manage members')
        self._require_in_list(membership.task_list_id)
        _protect_owner(membership)
        membership_id, user_id = membership.id, membership.user_id
        membership.delete()
        log_action(user=self.actor, action='member_remove', object_type='membership', object_id=membership_id,
                   detail={'userId': user_id})


def service_for(user: User, task_list: TaskList) -> AuthorizedTaskService:
    return AuthorizedTaskService(authorize(user, task_list))


def format_membership(membership: ListMembership) -> dict:
    user = membership.user
    return {
        'id': membership.id,
        'userId': user.id,
        'email': user.email,
        'name': user.display_name(),
        'userType': user.user_type,
        'taskListId': membership.task_list_id,
        'permission': membership.permission,
        'startDate': membership.start_date.isoformat() if membership.start_date else None,
        'endDate': membership.end_date.isoformat() if membership.end_date else None,
    }
