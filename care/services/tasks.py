"""
Task completion.

Completing a task first checks its prerequisite, then marks its subtasks
done, then the task itself.  All of it happens in one transaction with
the target row locked, so a failure part way leaves nothing completed.
"""
from __future__ import annotations

import datetime
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from care.models import Task
from care.services.tasklists import broadcast_refresh, refresh_counts

logger = logging.getLogger(__name__)


class CascadePolicy(str, enum.Enum):
    DIRECT = 'direct'        # children only
    RECURSIVE = 'recursive'  # every descendant


class TaskCompletionError(Exception):
    status_code = 409
    code = 'task_completion_failed'


class PrerequisiteIncomplete(TaskCompletionError):
    code = 'prerequisite_incomplete'

    def __init__(self, task_id: int, prerequisite_id: int):
        self.task_id = task_id
        self.prerequisite_id = prerequisite_id
        super().__init__('complete the prerequisite first')


class PrerequisiteLookupFailed(TaskCompletionError):
    status_code = 424
    code = 'prerequisite_lookup_failed'

    def __init__(self, task_id: int, prerequisite_id: int):
        self.task_id = task_id
        self.prerequisite_id = prerequisite_id
        super().__init__('prerequisite lookup failed')


@dataclass(frozen=True)
class CompletionResult:
    task: Task
    finish_date: datetime.datetime
    cascaded_ids: list[int] = field(default_factory=list)


def default_policy() -> CascadePolicy:
    return CascadePolicy(getattr(settings, 'TASK_CASCADE_POLICY', CascadePolicy.DIRECT.value))


def subtask_ids(task: Task, policy: Union[CascadePolicy, str] = CascadePolicy.DIRECT) -> list[int]:
    """Ids of the subtasks ``policy`` reaches from ``task`` (done or not)."""
    policy = CascadePolicy(policy)
    found: list[int] = []
    seen = {task.id}
    frontier = [task.id]
    while frontier:
        children = list(
            Task.objects.filter(parent_task_id__in=frontier).exclude(id__in=seen).values_list('id', flat=True)
        )
        found.extend(children)
        seen.update(children)
        if policy is CascadePolicy.DIRECT:
            break
        frontier = children
    return found


def _check_prerequisite(task: Task) -> None:
    prerequisite_id = task.prerequisite_task_id
    if prerequisite_id is None:
        return
    try:
        row = Task.objects.filter(id=prerequisite_id).values('is_done').first()
    except DatabaseError as e:
        logger.warning("prerequisite %s of task %s could not be read: %s", prerequisite_id, task.id, e)
        raise PrerequisiteLookupFailed(task.id, prerequisite_id) from e
    if row is None:
        raise PrerequisiteLookupFailed(task.id, prerequisite_id)
    if not row['is_done']:
        raise PrerequisiteIncomplete(task.id, prerequisite_id)


def complete_task(
    task: Task,
    *,
    policy: Optional[Union[CascadePolicy, str]] = None,
    now: Optional[datetime.datetime] = None,
) -> CompletionResult:
    """Mark ``task`` done after its prerequisite, cascading to its subtasks.

    Raises :class:`PrerequisiteIncomplete` or :class:`PrerequisiteLookupFailed`
    without touching any row.  Subtasks that are already done keep their
    original ``finish_date``.
    """
    policy = CascadePolicy(policy) if policy is not None else default_policy()
    now = now or timezone.now()
    with transaction.atomic():
        locked = Task.objects.select_for_update().get(pk=task.pk)
        _check_prerequisite(locked)

        cascaded = list(
            Task.objects.filter(id__in=subtask_ids(locked, policy), is_done=False).values_list('id', flat=True)
        )
        if cascaded:
            Task.objects.filter(id__in=cascaded).update(is_done=True, finish_date=now, last_modified_on=now)

        locked.is_done = True
        locked.finish_date = now
        locked.save(update_fields=['is_done', 'finish_date', 'last_modified_on'])
        refresh_counts(locked.task_list)
        broadcast_refresh(locked.task_list_id)

    logger.info("task %s completed (policy=%s, cascaded=%s)", locked.id, policy.value, cascaded)
    task.is_done, task.finish_date = locked.is_done, locked.finish_date
    return CompletionResult(task=task, finish_date=now, cascaded_ids=cascaded)


def undo_complete(task: Task, *, now: Optional[datetime.datetime] = None) -> Task:
    """Reopen ``task``; its subtasks keep their state."""
    with transaction.atomic():
        locked = Task.objects.select_for_update().get(pk=task.pk)
        locked.is_done = False
        locked.finish_date = None
        locked.save(update_fields=['is_done', 'finish_date', 'last_modified_on'])
        refresh_counts(locked.task_list)
        broadcast_refresh(locked.task_list_id)
    task.is_done, task.finish_date = False, None
    return task


def related_tasks(task: Task) -> dict:
    """The prerequisite of ``task`` and its direct subtasks."""
    return {
        'prerequisite': task.prerequisite_task,
        'subtasks': list(task.subtasks.order_by('id')),
        'dependents': list(task.dependent_tasks.order_by('id')),
    }


def format_task(task: Task, *, with_details: bool = True) -> dict:
    from care.services.task_types import format_details

    data = {
        'id': task.id,
        'taskListId': task.task_list_id,
        'title': task.title,
        'type': task.type,
        'description': task.description,
        'priority': task.priority,
        'dueDate': task.due_date.isoformat() if task.due_date else None,
        'finishDate': task.finish_date.isoformat() if task.finish_date else None,
        'isDone': task.is_done,
        'isArchived': task.is_archived,
        'prerequisiteTaskId': task.prerequisite_task_id,
        'parentTaskId': task.parent_task_id,
        'taskCreatorId': task.task_creator_id,
        'taskCreatorName': task.task_creator.display_name() if task.task_creator else None,
        'createdAt': task.created_at.isoformat() if task.created_at else None,
        'lastModifiedOn': task.last_modified_on.isoformat() if task.last_modified_on else None,
    }
    if with_details:
        data['details'] = format_details(task)
    return data
