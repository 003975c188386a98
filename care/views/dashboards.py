"""
Role dashboards.

Each role prefix (``/patient``, ``/caretaker``, ``/doctor``,
``/medical-staff``, ``/admin``) serves a JSON summary for its user type.
The role router has already redirected users of other types away.
"""
from __future__ import annotations

from django.db.models import Count
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from care.models import AppointmentTask, Task, TaskList, TreatmentTask, User, VitalReading
from care.permissions import IsAdminType, IsCaretakerType, IsDoctorType, IsMedicalStaffType, IsPatientType
from care.services.memberships import permission_for
from care.services.profiles import format_profile, format_user, profile_for
from care.services.tasklists import ACTIVE, format_task_list, lists_for_user, tasks_for_view
from care.services.tasks import format_task

UPCOMING_LIMIT = 10


def _lists_summary(user: User) -> list[dict]:
    return [format_task_list(tl, permission=permission_for(user, tl)) for tl in lists_for_user(user)]


@api_view(['GET'])
@permission_classes([IsPatientType])
def patient_dashboard(request):
    user: User = request.user
    patient = profile_for(user, user.user_type)
    upcoming = []
    recent_vitals = []
    if patient is not None:
        for tl in patient.task_lists.all():
            upcoming.extend(tasks_for_view(tl, ACTIVE, user)[:UPCOMING_LIMIT])
        recent_vitals = [
            {'vitals': r.vitals.name, 'value': r.value, 'unitOfMeasure': r.vitals.unit_of_measure,
             'timestamp': r.timestamp.isoformat()}
            for r in VitalReading.objects.filter(patient=patient).select_related('vitals').order_by('-timestamp')[:5]
        ]
    return Response({
        'user': format_user(user),
        'profile': format_profile(patient),
        'taskLists': _lists_summary(user),
        'upcomingTasks': [format_task(t, with_details=False) for t in upcoming[:UPCOMING_LIMIT]],
        'recentVitals': recent_vitals,
        'journalCount': patient.journal_entries.count() if patient else 0,
    })


@api_view(['GET'])
@permission_classes([IsCaretakerType])
def caretaker_dashboard(request):
    user: User = request.user
    return Response({
        'user': format_user(user),
        'profile': format_profile(profile_for(user, user.user_type)),
        'taskLists': _lists_summary(user),
    })


@api_view(['GET'])
@permission_classes([IsDoctorType])
def doctor_dashboard(request):
    user: User = request.user
    doctor = profile_for(user, user.user_type)
    appointments = []
    if doctor is not None:
        qs = (AppointmentTask.objects
              .filter(doctor=doctor, appointment_date__gte=timezone.now(), task__is_done=False)
              .select_related('task__task_creator')
              .order_by('appointment_date')[:UPCOMING_LIMIT])
        appointments = [format_task(a.task) for a in qs]
    return Response({
        'user': format_user(user),
        'profile': format_profile(doctor),
        'taskLists': _lists_summary(user),
        'upcomingAppointments': appointments,
    })


@api_view(['GET'])
@permission_classes([IsMedicalStaffType])
def medical_staff_dashboard(request):
    user: User = request.user
    staff = profile_for(user, user.user_type)
    treatments = []
    if staff is not None and staff.medical_institution_id:
        qs = (TreatmentTask.objects
              .filter(medical_institution_id=staff.medical_institution_id, date__gte=timezone.now())
              .select_related('task__task_creator')
              .order_by('date')[:UPCOMING_LIMIT])
        treatments = [format_task(t.task) for t in qs]
    return Response({
        'user': format_user(user),
        'profile': format_profile(staff),
        'upcomingTreatments': treatments,
    })


@api_view(['GET'])
@permission_classes([IsAdminType])
def admin_dashboard(request):
    by_type = {row['user_type']: row['n'] for row in User.objects.values('user_type').annotate(n=Count('id'))}
    return Response({
        'user': format_user(request.user),
        'users': {str(k or 'UNTYPED'): v for k, v in by_type.items()},
        'taskLists': TaskList.objects.count(),
        'tasks': {
            'total': Task.objects.count(),
            'done': Task.objects.filter(is_done=True).count(),
            'archived': Task.objects.filter(is_archived=True).count(),
        },
    })
