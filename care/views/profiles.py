"""
Profile views for the signed-in user: person fields, the type-specific
profile and addresses.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from care.models import Address, User, UserType
from care.permissions import IsCaretakerType, IsDoctorType, IsMedicalStaffType, IsPatientType
from care.serializers.profiles import (
    AddressSerializer,
    CaretakerProfileSerializer,
    DoctorProfileSerializer,
    MedicalStaffProfileSerializer,
    PatientProfileSerializer,
    UserProfileSerializer,
)
from care.services.profiles import (
    PROFILE_WRITERS,
    address_fields,
    format_address,
    format_profile,
    format_user,
    profile_for,
    update_person,
)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    user: User = request.user
    if request.method == 'POST':
        s = UserProfileSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        update_person(user, s.validated_data)
    return Response({
        'user': format_user(user),
        'profile': format_profile(profile_for(user, user.user_type)),
        'addresses': [format_address(a) for a in user.addresses.order_by('id')],
    })


def _typed_profile(request, user_type: str, serializer_class):
    user: User = request.user
    if request.method == 'POST':
        s = serializer_class(data=request.data)
        s.is_valid(raise_exception=True)
        profile = PROFILE_WRITERS[user_type](user, s.validated_data)
        return Response(format_profile(profile))
    profile = profile_for(user, user_type)
    if profile is None:
        return Response({'ok': False, 'detail': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(format_profile(profile))


@api_view(['GET', 'POST'])
@permission_classes([IsPatientType])
def patient_profile(request):
    return _typed_profile(request, UserType.PATIENT, PatientProfileSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsDoctorType])
def doctor_profile(request):
    return _typed_profile(request, UserType.DOCTOR, DoctorProfileSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsCaretakerType])
def caretaker_profile(request):
    return _typed_profile(request, UserType.CARETAKER, CaretakerProfileSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsMedicalStaffType])
def medical_staff_profile(request):
    return _typed_profile(request, UserType.MEDICAL_STAFF, MedicalStaffProfileSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def addresses(request):
    user: User = request.user
    if request.method == 'GET':
        return Response([format_address(a) for a in user.addresses.order_by('id')])
    s = AddressSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    address = Address.objects.create(user=user, **address_fields(s.validated_data))
    return Response(format_address(address), status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk: int):
    address = get_object_or_404(Address, pk=pk, user=request.user)
    if request.method == 'PUT':
        s = AddressSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for attr, value in address_fields(s.validated_data).items():
            setattr(address, attr, value)
        address.save()
        return Response(format_address(address))
    address.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
