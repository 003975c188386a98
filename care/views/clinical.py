"""
Doctor and medical-staff forms: appointment notes and treatments.
"""
from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from care.models import AppointmentTask, Patient, TreatmentTask
from care.permissions import IsDoctorType, IsMedicalStaffType
from care.serializers.tasks import AppointmentNotesSerializer, TreatmentCreateSerializer, TreatmentUpdateSerializer
from care.services.audit import log_action
from care.services.memberships import service_for
from care.services.task_types import TreatmentDetails, updated_details
from care.services.tasklists import broadcast_refresh
from care.services.tasks import format_task


@api_view(['POST'])
@permission_classes([IsDoctorType])
def appointment_notes(request, pk: int):
    """Only the appointment's own doctor may write its notes."""
    appointment = get_object_or_404(AppointmentTask.objects.select_related('task', 'doctor'), pk=pk)
    doctor = getattr(request.user, 'doctor', None)
    if doctor is None or appointment.doctor_id != doctor.id:
        return Response({'ok': False, 'detail': 'Only the assigned doctor may add notes'},
                        status=status.HTTP_403_FORBIDDEN)
    s = AppointmentNotesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        appointment.doctors_notes = s.validated_data['doctorsNotes']
        appointment.save(update_fields=['doctors_notes'])
        broadcast_refresh(appointment.task.task_list_id)
    log_action(user=request.user, action='appointment_notes', object_type='appointment', object_id=appointment.id)
    return Response({'ok': True, 'task': format_task(appointment.task)})


def _staff(request):
    return getattr(request.user, 'medical_staff', None)


@api_view(['GET', 'POST'])
@permission_classes([IsMedicalStaffType])
def treatments(request):
    staff = _staff(request)
    if staff is None or staff.medical_institution_id is None:
        return Response({'ok': False, 'detail': 'Staff profile has no medical institution'},
                        status=status.HTTP_400_BAD_REQUEST)
    if request.method == 'GET':
        qs = (TreatmentTask.objects
              .filter(medical_institution_id=staff.medical_institution_id)
              .select_related('task__task_creator')
              .order_by('-date'))
        return Response([format_task(t.task) for t in qs])

    s = TreatmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    patient = get_object_or_404(Patient, pk=vd['patientId'])
    task_list = patient.task_lists.order_by('id').first()
    if task_list is None:
        raise PermissionDenied('Patient has no task list to add treatments to')
    service = service_for(request.user, task_list)
    details = TreatmentDetails(
        treatment_type=vd['treatmentType'],
        date=vd['date'],
        medical_institution_id=staff.medical_institution_id,
        dosage=vd.get('dosage'),
    )
    fields = {'description': vd.get('description', ''), 'due_date': vd.get('dueDate')}
    if 'priority' in vd:
        fields['priority'] = vd['priority']
    task = service.create_task(details=details, title=vd['title'], **fields)
    return Response(format_task(task), status=status.HTTP_201_CREATED)


@api_view(['PUT'])
@permission_classes([IsMedicalStaffType])
def treatment_detail(request, pk: int):
    staff = _staff(request)
    treatment = get_object_or_404(TreatmentTask.objects.select_related('task__task_list'), pk=pk)
    if staff is None or treatment.medical_institution_id != staff.medical_institution_id:
        return Response({'ok': False, 'detail': 'Treatment belongs to another institution'},
                        status=status.HTTP_403_FORBIDDEN)
    s = TreatmentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    task = treatment.task
    details = updated_details(task, s.validated_data)
    service_for(request.user, task.task_list).update_task(task, details=details)
    treatment.refresh_from_db()
    return Response(format_task(treatment.task))
