"""
Onboarding and user profiles.

Onboarding turns a freshly signed-up (untyped) user into one of the
four self-service user types: it writes the person fields, sets
``user_type`` and creates the matching profile row in one transaction.
A new patient also gets a task list they manage.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError

from care.models import (
    Address,
    CancerStage,
    CancerType,
    Caretaker,
    Doctor,
    Gender,
    Honorific,
    MedicalInstitution,
    MedicalStaff,
    Patient,
    Relationship,
    Specialization,
    User,
    UserType,
)
from care.services.tasklists import ensure_task_list

logger = logging.getLogger(__name__)

PERSON_FIELDS = {
    'honorific': 'honorific',
    'firstName': 'first_name',
    'middleName': 'middle_name',
    'lastName': 'last_name',
    'gender': 'gender',
    'phone': 'phone',
}


def _lookup(model, pk: Optional[int], field: str):
    if pk is None:
        return None
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        raise DRFValidationError({field: f'{model.__name__} {pk} does not exist'})
    return obj


def update_person(user: User, data: dict[str, Any]) -> User:
    changed = []
    for key, attr in PERSON_FIELDS.items():
        if key in data:
            value = data[key]
            if value is None and attr in ('middle_name', 'phone'):
                value = ''
            setattr(user, attr, value)
            changed.append(attr)
    if changed:
        user.save(update_fields=changed)
    return user


def save_patient(user: User, data: dict[str, Any]) -> Patient:
    patient, created = Patient.objects.get_or_create(user=user)
    if 'cancerTypeId' in data:
        patient.cancer_type = _lookup(CancerType, data['cancerTypeId'], 'cancerTypeId')
    if 'cancerStage' in data:
        patient.cancer_stage = data['cancerStage']
    if 'diagnosisDate' in data:
        patient.diagnosis_date = data['diagnosisDate']
    patient.save()
    if created:
        ensure_task_list(patient)
    return patient


def save_doctor(user: User, data: dict[str, Any]) -> Doctor:
    doctor = Doctor.objects.filter(user=user).first() or Doctor(user=user)
    if 'licenseNumber' in data:
        doctor.license_number = data['licenseNumber']
    if 'specializationId' in data:
        doctor.specialization = _lookup(Specialization, data['specializationId'], 'specializationId')
    doctor.save()
    return doctor


def save_caretaker(user: User, data: dict[str, Any]) -> Caretaker:
    caretaker = Caretaker.objects.filter(user=user).first() or Caretaker(user=user)
    if 'relationshipToPatient' in data:
        caretaker.relationship_to_patient = data['relationshipToPatient']
    if 'qualifications' in data:
        caretaker.qualifications = data['qualifications']
    caretaker.save()
    return caretaker


def save_medical_staff(user: User, data: dict[str, Any]) -> MedicalStaff:
    staff = MedicalStaff.objects.filter(user=user).first() or MedicalStaff(user=user)
    if 'medicalInstitutionId' in data:
        staff.medical_institution = _lookup(MedicalInstitution, data['medicalInstitutionId'], 'medicalInstitutionId')
    if 'designation' in data:
        staff.designation = data['designation']
    if 'staffLicenseNumber' in data:
        staff.staff_license_number = data['staffLicenseNumber']
    staff.save()
    return staff


PROFILE_WRITERS = {
    UserType.PATIENT: save_patient,
    UserType.DOCTOR: save_doctor,
    UserType.CARETAKER: save_caretaker,
    UserType.MEDICAL_STAFF: save_medical_staff,
}


@transaction.atomic
def onboard(user: User, data: dict[str, Any]):
    """Write person fields, ``user_type`` and the type profile; returns the profile."""
    if user.user_type:
        raise DRFValidationError({'userType': 'Onboarding already completed'})
    user_type = data['userType']
    update_person(user, data)
    user.user_type = user_type
    user.save(update_fields=['user_type'])
    profile = PROFILE_WRITERS[user_type](user, data)
    logger.info("user %s onboarded as %s", user.id, user_type)
    return profile


def profile_for(user: User, user_type: str):
    accessor = {
        UserType.PATIENT: 'patient',
        UserType.DOCTOR: 'doctor',
        UserType.CARETAKER: 'caretaker',
        UserType.MEDICAL_STAFF: 'medical_staff',
    }.get(user_type)
    if accessor is None:
        return None
    return getattr(user, accessor, None)


def require_patient(user: User) -> Patient:
    patient = getattr(user, 'patient', None)
    if patient is None:
        raise NotFound('Patient profile not found')
    return patient


def onboarding_options() -> dict:
    return {
        'userTypes': [{'value': v, 'label': label} for v, label in UserType.choices if v != UserType.ADMIN],
        'honorifics': [{'value': v, 'label': label} for v, label in Honorific.choices],
        'genders': [{'value': v, 'label': label} for v, label in Gender.choices],
        'cancerStages': [{'value': v, 'label': label} for v, label in CancerStage.choices],
        'relationships': [{'value': v, 'label': label} for v, label in Relationship.choices],
        'cancerTypes': [{'id': c.id, 'name': c.name} for c in CancerType.objects.order_by('name')],
        'specializations': [{'id': s.id, 'name': s.name} for s in Specialization.objects.order_by('name')],
        'institutions': [{'id': i.id, 'name': i.name} for i in MedicalInstitution.objects.order_by('name')],
    }


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------
def format_user(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'userType': user.user_type,
        'honorific': user.honorific,
        'firstName': user.first_name,
        'middleName': user.middle_name,
        'lastName': user.last_name,
        'name': user.display_name(),
        'gender': user.gender,
        'phone': user.phone,
    }


def format_address(address: Optional[Address]) -> Optional[dict]:
    if address is None:
        return None
    return {
        'id': address.id,
        'addressLineOne': address.address_line_one,
        'addressLineTwo': address.address_line_two,
        'city': address.city,
        'province': address.province,
        'postalCode': address.postal_code,
        'country': address.country,
        'type': address.type,
    }


ADDRESS_FIELDS = {
    'addressLineOne': 'address_line_one',
    'addressLineTwo': 'address_line_two',
    'city': 'city',
    'province': 'province',
    'postalCode': 'postal_code',
    'country': 'country',
    'type': 'type',
}


def address_fields(vd: dict) -> dict:
    return {attr: vd[key] for key, attr in ADDRESS_FIELDS.items() if key in vd}


def format_profile(profile) -> Optional[dict]:
    if profile is None:
        return None
    if isinstance(profile, Patient):
        return {
            'id': profile.id,
            'cancerTypeId': profile.cancer_type_id,
            'cancerType': profile.cancer_type.name if profile.cancer_type else None,
            'cancerStage': profile.cancer_stage,
            'diagnosisDate': profile.diagnosis_date.isoformat() if profile.diagnosis_date else None,
        }
    if isinstance(profile, Doctor):
        return {
            'id': profile.id,
            'licenseNumber': profile.license_number,
            'specializationId': profile.specialization_id,
            'specialization': profile.specialization.name if profile.specialization else None,
        }
    if isinstance(profile, Caretaker):
        return {
            'id': profile.id,
            'relationshipToPatient': profile.relationship_to_patient,
            'qualifications': profile.qualifications,
        }
    return {
        'id': profile.id,
        'medicalInstitutionId': profile.medical_institution_id,
        'medicalInstitution': profile.medical_institution.name if profile.medical_institution else None,
        'designation': profile.designation,
        'staffLicenseNumber': profile.staff_license_number,
    }
