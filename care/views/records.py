"""
Patient records: vital readings and journal entries.

Vital readings can be read and recorded by the patient and by anyone
holding an effective membership on one of the patient's task lists.
Journals are private to the patient.
"""
from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from care.models import JournalEntry, JournalTag, Patient, User, VitalReading, Vitals
from care.permissions import IsPatientType, IsTyped
from care.serializers.records import (
    JournalEntrySerializer,
    TagSerializer,
    VitalReadingBatchSerializer,
    VitalReadingUpdateSerializer,
)
from care.services.memberships import can_access_patient
from care.services.profiles import require_patient


def _format_reading(r: VitalReading) -> dict:
    return {
        'id': r.id,
        'patientId': r.patient_id,
        'vitalsId': r.vitals_id,
        'vitalsName': r.vitals.name,
        'unitOfMeasure': r.vitals.unit_of_measure,
        'value': r.value,
        'timestamp': r.timestamp.isoformat(),
        'recordedBy': r.recorded_by_id,
        'lastEditedBy': r.last_edited_by_id,
    }


def _format_entry(e: JournalEntry) -> dict:
    return {
        'id': e.id,
        'patientId': e.patient_id,
        'title': e.title,
        'content': e.content,
        'mood': e.mood,
        'dateEntered': e.date_entered.isoformat(),
        'tags': [_format_journal_tag(t) for t in e.tags.all()],
    }


def _format_journal_tag(t: JournalTag) -> dict:
    return {'id': t.id, 'journalId': t.journal_id, 'value': t.value, 'color': t.color}


def _target_patient(user: User, patient_id) -> Patient:
    if patient_id in (None, ''):
        return require_patient(user)
    try:
        patient = Patient.objects.select_related('user').get(pk=int(patient_id))
    except (Patient.DoesNotExist, ValueError, TypeError):
        raise ValidationError({'patientId': 'Patient not found'})
    if not can_access_patient(user, patient):
        raise PermissionDenied('No access to this patient')
    return patient


# ---------------------------------------------------------------------
# Vital readings
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsTyped])
def vital_readings(request):
    user: User = request.user
    if request.method == 'GET':
        patient = _target_patient(user, request.query_params.get('patientId'))
        qs = VitalReading.objects.filter(patient=patient).select_related('vitals')
        vitals_id = request.query_params.get('vitalsId')
        if vitals_id:
            qs = qs.filter(vitals_id=vitals_id)
        return Response([_format_reading(r) for r in qs.order_by('-timestamp', 'id')])

    s = VitalReadingBatchSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    patient = _target_patient(user, vd.get('patientId'))
    ids = [r['vitalsId'] for r in vd['readings']]
    vitals = Vitals.objects.in_bulk(ids)
    missing = [i for i in ids if i not in vitals]
    if missing:
        return Response({'ok': False, 'detail': f'Unknown vitals: {missing}'}, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        created = [
            VitalReading.objects.create(
                patient=patient, vitals=vitals[r['vitalsId']], value=r['value'],
                timestamp=vd['timestamp'], recorded_by=user,
            )
            for r in vd['readings']
        ]
    return Response([_format_reading(r) for r in created], status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsTyped])
def vital_reading_detail(request, pk: int):
    reading = get_object_or_404(VitalReading.objects.select_related('patient', 'vitals'), pk=pk)
    if not can_access_patient(request.user, reading.patient):
        return Response({'ok': False, 'detail': 'Not found'}, status=status.HTTP_404_NOT_FOUND)
    if request.method == 'PUT':
        s = VitalReadingUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        if 'value' in vd:
            reading.value = vd['value']
        if 'timestamp' in vd:
            reading.timestamp = vd['timestamp']
        reading.last_edited_by = request.user
        reading.save()
        return Response(_format_reading(reading))
    reading.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------
# Journals
# ---------------------------------------------------------------------
def _own_entry(request, pk: int) -> JournalEntry:
    patient = require_patient(request.user)
    return get_object_or_404(JournalEntry, pk=pk, patient=patient)


@api_view(['GET', 'POST'])
@permission_classes([IsPatientType])
def journal_entries(request):
    patient = require_patient(request.user)
    if request.method == 'GET':
        qs = patient.journal_entries.prefetch_related('tags').order_by('-date_entered', '-id')
        tag = request.query_params.get('tag')
        if tag:
            qs = qs.filter(tags__value=tag.lstrip('#')).distinct()
        return Response([_format_entry(e) for e in qs])
    s = JournalEntrySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    entry = JournalEntry.objects.create(
        patient=patient, title=vd['title'], content=vd['content'], mood=vd.get('mood', ''),
        date_entered=vd.get('dateEntered') or timezone.now(),
    )
    return Response(_format_entry(entry), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsPatientType])
def journal_entry_detail(request, pk: int):
    entry = _own_entry(request, pk)
    if request.method == 'PUT':
        s = JournalEntrySerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        for key, attr in (('title', 'title'), ('content', 'content'), ('mood', 'mood'), ('dateEntered', 'date_entered')):
            if key in vd:
                setattr(entry, attr, vd[key])
        entry.save()
        return Response(_format_entry(entry))
    entry.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsPatientType])
def journal_tags(request, pk: int):
    entry = _own_entry(request, pk)
    if request.method == 'GET':
        return Response([_format_journal_tag(t) for t in entry.tags.order_by('id')])
    s = TagSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tag = JournalTag.objects.create(journal=entry, value=s.validated_data['value'],
                                    color=s.validated_data.get('color', ''))
    return Response(_format_journal_tag(tag), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsPatientType])
def journal_tag_detail(request, pk: int):
    patient = require_patient(request.user)
    tag = get_object_or_404(JournalTag, pk=pk, journal__patient=patient)
    if request.method == 'PUT':
        s = TagSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        if 'value' in vd:
            tag.value = vd['value']
        if 'color' in vd:
            tag.color = vd['color']
        tag.save()
        return Response(_format_journal_tag(tag))
    tag.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
