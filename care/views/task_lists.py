"""
Task list and membership views.

A task list is visible to its effective members (and admins).  Tasks are
listed per view (active, completed, archived); creating tasks and
managing members requires a MANAGER grant, which the service layer
enforces.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from care.models import ListMembership, TaskList, User
from care.permissions import IsTyped
from care.serializers.tasks import (
    MembershipCreateSerializer,
    MembershipUpdateSerializer,
    TaskSerializer,
    TaskViewQuerySerializer,
    task_fields,
)
from care.services.memberships import authorize, format_membership, permission_for, service_for
from care.services.task_types import details_from_data
from care.services.tasklists import format_task_list, lists_for_user, tasks_for_view
from care.services.tasks import format_task


@api_view(['GET'])
@permission_classes([IsTyped])
def task_lists(request):
    user: User = request.user
    return Response([
        format_task_list(tl, permission=permission_for(user, tl)) for tl in lists_for_user(user)
    ])


@api_view(['GET'])
@permission_classes([IsTyped])
def task_list_detail(request, pk: int):
    task_list = get_object_or_404(TaskList.objects.select_related('patient__user'), pk=pk)
    grant = authorize(request.user, task_list)
    data = format_task_list(task_list, permission=grant.permission)
    data['canManage'] = grant.is_manager
    return Response(data)


@api_view(['GET', 'POST'])
@permission_classes([IsTyped])
def task_list_tasks(request, pk: int):
    task_list = get_object_or_404(TaskList, pk=pk)
    if request.method == 'GET':
        authorize(request.user, task_list)
        q = TaskViewQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        view = q.validated_data['view']
        tasks = tasks_for_view(task_list, view, request.user)
        return Response({'view': view, 'tasks': [format_task(t) for t in tasks]})

    s = TaskSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    details = details_from_data(vd['type'], vd)
    fields = task_fields(vd)
    title = fields.pop('title')
    task = service_for(request.user, task_list).create_task(details=details, title=title, **fields)
    return Response(format_task(task), status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsTyped])
def task_list_members(request, pk: int):
    task_list = get_object_or_404(TaskList, pk=pk)
    service = service_for(request.user, task_list)
    if request.method == 'GET':
        qs = ListMembership.objects.filter(task_list=task_list).select_related('user').order_by('id')
        return Response([format_membership(m) for m in qs])

    s = MembershipCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if vd.get('userId'):
        invitee = User.objects.filter(id=vd['userId']).first()
    else:
        invitee = User.objects.filter(email__iexact=vd['email']).first()
    if invitee is None:
        return Response({'ok': False, 'detail': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    membership = service.invite_member(
        invitee, permission=vd['permission'],
        start_date=vd.get('startDate'), end_date=vd.get('endDate'),
    )
    return Response(format_membership(membership), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsTyped])
def membership_detail(request, pk: int):
    membership = get_object_or_404(ListMembership.objects.select_related('user', 'task_list'), pk=pk)
    service = service_for(request.user, membership.task_list)
    if request.method == 'PUT':
        s = MembershipUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        fields = {}
        for key, attr in (('permission', 'permission'), ('startDate', 'start_date'), ('endDate', 'end_date')):
            if key in vd:
                fields[attr] = vd[key]
        membership = service.update_membership(membership, **fields)
        return Response(format_membership(membership))
    service.remove_member(membership)
    return Response(status=status.HTTP_204_NO_CONTENT)
