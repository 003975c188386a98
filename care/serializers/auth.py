from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from care.models import CancerStage, Gender, Honorific, Relationship, UserType
from care.serializers.common import clean_text


class SignInSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, v):
        return v.strip().lower()


class SignUpSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False, write_only=True)
    firstName = serializers.CharField(max_length=150, required=False, allow_blank=True)
    lastName = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_firstName(self, v):
        return clean_text(v)

    def validate_lastName(self, v):
        return clean_text(v)

    def validate(self, attrs):
        try:
            validate_password(attrs['password'])
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return attrs


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)


class OAuthCallbackSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=2048)
    state = serializers.CharField(max_length=128)


# Fields every onboarding form asks for
class PersonSerializer(serializers.Serializer):
    honorific = serializers.ChoiceField(choices=Honorific.choices, required=False, allow_null=True)
    firstName = serializers.CharField(max_length=150)
    middleName = serializers.CharField(max_length=150, required=False, allow_blank=True)
    lastName = serializers.CharField(max_length=150)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_null=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate_firstName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('First name is required')
        return v

    def validate_middleName(self, v):
        return clean_text(v)

    def validate_lastName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Last name is required')
        return v

    def validate_phone(self, v):
        return clean_text(v)


ONBOARDING_TYPES = [UserType.PATIENT, UserType.CARETAKER, UserType.DOCTOR, UserType.MEDICAL_STAFF]

REQUIRED_BY_TYPE = {
    UserType.PATIENT: ('cancerStage',),
    UserType.DOCTOR: ('licenseNumber',),
    UserType.CARETAKER: ('relationshipToPatient',),
    UserType.MEDICAL_STAFF: ('medicalInstitutionId',),
}


class OnboardingSerializer(PersonSerializer):
    userType = serializers.ChoiceField(choices=ONBOARDING_TYPES)
    # patient
    cancerTypeId = serializers.IntegerField(required=False, allow_null=True)
    cancerStage = serializers.ChoiceField(choices=CancerStage.choices, required=False)
    diagnosisDate = serializers.DateField(required=False, allow_null=True)
    # doctor
    licenseNumber = serializers.CharField(max_length=64, required=False)
    specializationId = serializers.IntegerField(required=False, allow_null=True)
    # caretaker
    relationshipToPatient = serializers.ChoiceField(choices=Relationship.choices, required=False)
    qualifications = serializers.CharField(required=False, allow_blank=True)
    # medical staff
    medicalInstitutionId = serializers.IntegerField(required=False)
    designation = serializers.CharField(max_length=128, required=False, allow_blank=True)
    staffLicenseNumber = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_qualifications(self, v):
        return clean_text(v)

    def validate(self, attrs):
        missing = [f for f in REQUIRED_BY_TYPE[attrs['userType']] if attrs.get(f) in (None, '')]
        if missing:
            raise serializers.ValidationError({f: 'This field is required.' for f in missing})
        return attrs
