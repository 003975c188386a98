"""
Reference data shared by every user: cancer types, specializations,
medical institutions and vital signs.  Anyone signed in may read;
only ADMIN users may write.
"""
from __future__ import annotations

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from care.models import Address, CancerType, MedicalInstitution, Specialization, Vitals
from care.permissions import IsAdminTypeOrReadOnly
from care.serializers.reference import InstitutionSerializer, NamedSerializer, VitalsSerializer
from care.services.audit import log_action
from care.services.profiles import address_fields, format_address


def _named_list(request, model):
    if request.method == 'GET':
        return Response([{'id': o.id, 'name': o.name} for o in model.objects.order_by('name')])
    s = NamedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        with transaction.atomic():
            obj = model.objects.create(name=s.validated_data['name'])
    except IntegrityError:
        return Response({'ok': False, 'detail': f"{s.validated_data['name']} already exists"},
                        status=status.HTTP_400_BAD_REQUEST)
    log_action(user=request.user, action='reference_create', object_type=model.__name__.lower(), object_id=obj.id)
    return Response({'id': obj.id, 'name': obj.name}, status=status.HTTP_201_CREATED)


def _named_detail(request, model, pk: int):
    obj = get_object_or_404(model, pk=pk)
    if request.method == 'GET':
        return Response({'id': obj.id, 'name': obj.name})
    if request.method == 'PUT':
        s = NamedSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        obj.name = s.validated_data['name']
        try:
            with transaction.atomic():
                obj.save(update_fields=['name'])
        except IntegrityError:
            return Response({'ok': False, 'detail': f"{obj.name} already exists"}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'id': obj.id, 'name': obj.name})
    obj.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminTypeOrReadOnly])
def cancer_types(request):
    return _named_list(request, CancerType)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminTypeOrReadOnly])
def cancer_type_detail(request, pk: int):
    return _named_detail(request, CancerType, pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminTypeOrReadOnly])
def specializations(request):
    return _named_list(request, Specialization)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminTypeOrReadOnly])
def specialization_detail(request, pk: int):
    return _named_detail(request, Specialization, pk)


# ---------------------------------------------------------------------
# Institutions (with nested address)
# ---------------------------------------------------------------------
def _format_institution(i: MedicalInstitution) -> dict:
    return {'id': i.id, 'name': i.name, 'phone': i.phone, 'address': format_address(i.address)}


@api_view(['GET', 'POST'])
@permission_classes([IsAdminTypeOrReadOnly])
def institutions(request):
    if request.method == 'GET':
        qs = MedicalInstitution.objects.select_related('address').order_by('name')
        return Response([_format_institution(i) for i in qs])
    s = InstitutionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    with transaction.atomic():
        address = Address.objects.create(**address_fields(vd['address'])) if vd.get('address') else None
        inst = MedicalInstitution.objects.create(name=vd['name'], phone=vd['phone'], address=address)
    log_action(user=request.user, action='reference_create', object_type='institution', object_id=inst.id)
    return Response(_format_institution(inst), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminTypeOrReadOnly])
def institution_detail(request, pk: int):
    inst = get_object_or_404(MedicalInstitution.objects.select_related('address'), pk=pk)
    if request.method == 'GET':
        return Response(_format_institution(inst))
    if request.method == 'PUT':
        s = InstitutionSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        with transaction.atomic():
            if 'name' in vd:
                inst.name = vd['name']
            if 'phone' in vd:
                inst.phone = vd['phone']
            if vd.get('address'):
                fields = address_fields(vd['address'])
                if inst.address is None:
                    inst.address = Address.objects.create(**fields)
                else:
                    for attr, value in fields.items():
                        setattr(inst.address, attr, value)
                    inst.address.save()
            inst.save()
        return Response(_format_institution(inst))
    inst.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------
# Vitals
# ---------------------------------------------------------------------
def _format_vitals(v: Vitals) -> dict:
    return {'id': v.id, 'name': v.name, 'unitOfMeasure': v.unit_of_measure, 'description': v.description}


@api_view(['GET', 'POST'])
@permission_classes([IsAdminTypeOrReadOnly])
def vitals_list(request):
    if request.method == 'GET':
        return Response([_format_vitals(v) for v in Vitals.objects.order_by('name')])
    s = VitalsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    try:
        with transaction.atomic():
            v = Vitals.objects.create(name=vd['name'], unit_of_measure=vd['unitOfMeasure'],
                                      description=vd.get('description', ''))
    except IntegrityError:
        return Response({'ok': False, 'detail': f"{vd['name']} already exists"}, status=status.HTTP_400_BAD_REQUEST)
    return Response(_format_vitals(v), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminTypeOrReadOnly])
def vitals_detail(request, pk: int):
    v = get_object_or_404(Vitals, pk=pk)
    if request.method == 'GET':
        return Response(_format_vitals(v))
    if request.method == 'PUT':
        s = VitalsSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        for key, attr in (('name', 'name'), ('unitOfMeasure', 'unit_of_measure'), ('description', 'description')):
            if key in vd:
                setattr(v, attr, vd[key])
        v.save()
        return Response(_format_vitals(v))
    v.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
