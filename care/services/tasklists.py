"""
Task list queries, counters and change notifications.
"""
from __future__ import annotations

import logging
from typing import Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models import Count, Q, QuerySet

from care.models import ListMembership, ListPermission, Patient, Task, TaskList, User

logger = logging.getLogger(__name__)

ACTIVE = 'active'
COMPLETED = 'completed'
ARCHIVED = 'archived'
VIEWS = (ACTIVE, COMPLETED, ARCHIVED)


def group_name(task_list_id: int) -> str:
    return f"tasklist.{task_list_id}"


def tasks_for_view(task_list: TaskList, view: str, viewer: User) -> QuerySet:
    """Tasks of ``task_list`` shown in ``view`` for ``viewer``.

    Archived tasks are private to their creator; a completed task that
    someone else archived is hidden from everyone but that creator.
    """
    qs = Task.objects.filter(task_list=task_list)
    if view == ACTIVE:
        qs = qs.filter(is_done=False, is_archived=False)
    elif view == COMPLETED:
        qs = qs.filter(is_done=True).filter(Q(is_archived=False) | Q(task_creator=viewer))
    elif view == ARCHIVED:
        qs = qs.filter(is_archived=True, is_done=False, task_creator=viewer)
    else:
        raise ValueError(f"unknown view {view!r}")
    return qs.select_related('task_creator').order_by('due_date', 'id')


def refresh_counts(task_list: TaskList) -> TaskList:
    """Recompute the denormalized completed/uncompleted counters."""
    agg = Task.objects.filter(task_list=task_list).aggregate(
        done=Count('id', filter=Q(is_done=True)),
        open=Count('id', filter=Q(is_done=False)),
    )
    task_list.completed_tasks_count = agg['done'] or 0
    task_list.uncompleted_tasks_count = agg['open'] or 0
    task_list.save(update_fields=['completed_tasks_count', 'uncompleted_tasks_count'])
    return task_list


@transaction.atomic
def ensure_task_list(patient: Patient) -> TaskList:
    """Return the patient's task list, creating it with the patient as MANAGER."""
    task_list = patient.task_lists.order_by('id').first()
    if task_list is None:
        task_list = TaskList.objects.create(patient=patient)
        logger.info("created task list %s for patient %s", task_list.id, patient.id)
    ListMembership.objects.get_or_create(
        user=patient.user, task_list=task_list,
        defaults={'permission': ListPermission.MANAGER},
    )
    return task_list


def lists_for_user(user: User) -> QuerySet:
    """Task lists the user belongs to (all lists for admins)."""
    from care.services.memberships import effective_memberships, is_admin

    if is_admin(user):
        return TaskList.objects.select_related('patient__user').order_by('id')
    ids = effective_memberships(user).values_list('task_list_id', flat=True)
    return TaskList.objects.filter(id__in=ids).select_related('patient__user').order_by('id')


def _send_refresh(task_list_id: int, views: Iterable[str]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(group_name(task_list_id), {
        'type': 'tasklist.refresh',
        'taskListId': task_list_id,
        'views': list(views),
    })


def broadcast_refresh(task_list_id: int, views: Iterable[str] = VIEWS) -> None:
    """Tell connected members to reload ``views`` once the transaction commits."""
    views = list(views)
    transaction.on_commit(lambda: _send_refresh(task_list_id, views))


def format_task_list(task_list: TaskList, *, permission: str | None = None) -> dict:
    patient = task_list.patient
    return {
        'id': task_list.id,
        'patientId': patient.id,
        'patientName': patient.user.display_name(),
        'completedTasksCount': task_list.completed_tasks_count,
        'uncompletedTasksCount': task_list.uncompleted_tasks_count,
        'permission': permission,
    }
