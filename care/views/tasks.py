"""
Task views.

Every handler resolves the task's list, obtains a grant for the caller
and routes the mutation through :class:`AuthorizedTaskService`; the
views themselves never write to the database.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from care.models import Comment, MedicationTask, MedicationTaskSchedule, Task, TaskTag
from care.permissions import IsTyped
from care.serializers.records import TagSerializer
from care.serializers.tasks import CommentSerializer, ScheduleTimesSerializer, TaskSerializer, task_fields
from care.services.memberships import authorize, service_for
from care.services.schedules import format_schedule
from care.services.task_types import updated_details
from care.services.tasks import PrerequisiteIncomplete, PrerequisiteLookupFailed, format_task, related_tasks


def _task(pk: int) -> Task:
    return get_object_or_404(Task.objects.select_related('task_list', 'task_creator'), pk=pk)


def _format_comment(comment: Comment) -> dict:
    return {
        'id': comment.id,
        'taskId': comment.task_id,
        'authorId': comment.author_id,
        'authorName': comment.author.display_name() if comment.author else None,
        'content': comment.content,
        'timestamp': comment.timestamp.isoformat() if comment.timestamp else None,
    }


def _format_tag(tag: TaskTag) -> dict:
    return {
        'id': tag.id,
        'taskId': tag.task_id,
        'value': tag.value,
        'color': tag.color,
        'createdBy': tag.created_by_id,
        'createdAt': tag.created_at.isoformat() if tag.created_at else None,
    }


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsTyped])
def task_detail(request, pk: int):
    task = _task(pk)
    service = service_for(request.user, task.task_list)
    if request.method == 'GET':
        return Response(format_task(task))
    if request.method == 'PUT':
        s = TaskSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        if 'type' in request.data and vd.get('type') != task.type:
            return Response({'ok': False, 'detail': 'Task type cannot be changed'}, status=status.HTTP_400_BAD_REQUEST)
        details = updated_details(task, vd)
        task = service.update_task(task, details=details, **task_fields(vd))
        return Response(format_task(_task(task.id)))
    service.delete_task(task)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsTyped])
def task_complete(request, pk: int):
    task = _task(pk)
    service = service_for(request.user, task.task_list)
    try:
        result = service.complete_task(task)
    except PrerequisiteIncomplete as e:
        return Response({'ok': False, 'detail': str(e), 'prerequisiteTaskId': e.prerequisite_id},
                        status=status.HTTP_409_CONFLICT)
    except PrerequisiteLookupFailed as e:
        return Response({'ok': False, 'detail': str(e), 'prerequisiteTaskId': e.prerequisite_id},
                        status=status.HTTP_424_FAILED_DEPENDENCY)
    return Response({'ok': True, 'task': format_task(result.task), 'cascadedTaskIds': result.cascaded_ids})


@api_view(['POST'])
@permission_classes([IsTyped])
def task_undo_complete(request, pk: int):
    task = _task(pk)
    task = service_for(request.user, task.task_list).undo_complete(task)
    return Response({'ok': True, 'task': format_task(task)})


@api_view(['GET'])
@permission_classes([IsTyped])
def task_related(request, pk: int):
    task = _task(pk)
    authorize(request.user, task.task_list)
    related = related_tasks(task)
    prerequisite = related['prerequisite']
    return Response({
        'prerequisite': format_task(prerequisite, with_details=False) if prerequisite else None,
        'subtasks': [format_task(t, with_details=False) for t in related['subtasks']],
        'dependents': [format_task(t, with_details=False) for t in related['dependents']],
    })


# ---------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsTyped])
def task_comments(request, pk: int):
    task = _task(pk)
    service = service_for(request.user, task.task_list)
    if request.method == 'GET':
        qs = task.comments.select_related('author').order_by('timestamp', 'id')
        return Response([_format_comment(c) for c in qs])
    s = CommentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    comment = service.add_comment(task, content=s.validated_data['content'])
    return Response(_format_comment(comment), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsTyped])
def comment_detail(request, pk: int):
    comment = get_object_or_404(Comment.objects.select_related('task__task_list', 'author'), pk=pk)
    service = service_for(request.user, comment.task.task_list)
    if request.method == 'PUT':
        s = CommentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        comment = service.update_comment(comment, content=s.validated_data['content'])
        return Response(_format_comment(comment))
    service.delete_comment(comment)
    return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsTyped])
def task_tags(request, pk: int):
    task = _task(pk)
    service = service_for(request.user, task.task_list)
    if request.method == 'GET':
        return Response([_format_tag(t) for t in task.tags.order_by('id')])
    s = TagSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tag = service.add_tag(task, value=s.validated_data['value'], color=s.validated_data.get('color', ''))
    return Response(_format_tag(tag), status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsTyped])
def task_tag_detail(request, pk: int):
    tag = get_object_or_404(TaskTag.objects.select_related('task__task_list'), pk=pk)
    service_for(request.user, tag.task.task_list).remove_tag(tag)
    return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------
# Medication schedules
# ---------------------------------------------------------------------
def _schedule(pk: int) -> MedicationTaskSchedule:
    return get_object_or_404(
        MedicationTaskSchedule.objects.select_related('medication_task__task__task_list'), pk=pk
    )


@api_view(['POST'])
@permission_classes([IsTyped])
def medication_schedules(request, pk: int):
    medication = get_object_or_404(MedicationTask.objects.select_related('task__task_list'), pk=pk)
    s = ScheduleTimesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    created = service_for(request.user, medication.task.task_list).add_schedules(medication, s.validated_data['times'])
    return Response([format_schedule(x) for x in created], status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsTyped])
def schedule_taken(request, pk: int):
    schedule = _schedule(pk)
    service = service_for(request.user, schedule.medication_task.task.task_list)
    return Response(format_schedule(service.mark_taken(schedule, True)))


@api_view(['POST'])
@permission_classes([IsTyped])
def schedule_undo_taken(request, pk: int):
    schedule = _schedule(pk)
    service = service_for(request.user, schedule.medication_task.task.task_list)
    return Response(format_schedule(service.mark_taken(schedule, False)))


@api_view(['DELETE'])
@permission_classes([IsTyped])
def schedule_detail(request, pk: int):
    schedule = _schedule(pk)
    service_for(request.user, schedule.medication_task.task.task_list).delete_schedule(schedule)
    return Response(status=status.HTTP_204_NO_CONTENT)
