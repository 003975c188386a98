from rest_framework import serializers

from care.models import AddressType, CancerStage, Relationship
from care.serializers.auth import PersonSerializer
from care.serializers.common import clean_text


class UserProfileSerializer(PersonSerializer):
    """Partial update of the person fields on the signed-in user."""
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False)


class PatientProfileSerializer(serializers.Serializer):
    cancerTypeId = serializers.IntegerField(required=False, allow_null=True)
    cancerStage = serializers.ChoiceField(choices=CancerStage.choices, required=False)
    diagnosisDate = serializers.DateField(required=False, allow_null=True)


class DoctorProfileSerializer(serializers.Serializer):
    licenseNumber = serializers.CharField(max_length=64, required=False)
    specializationId = serializers.IntegerField(required=False, allow_null=True)


class CaretakerProfileSerializer(serializers.Serializer):
    relationshipToPatient = serializers.ChoiceField(choices=Relationship.choices, required=False)
    qualifications = serializers.CharField(required=False, allow_blank=True)

    def validate_qualifications(self, v):
        return clean_text(v)


class MedicalStaffProfileSerializer(serializers.Serializer):
    medicalInstitutionId = serializers.IntegerField(required=False, allow_null=True)
    designation = serializers.CharField(max_length=128, required=False, allow_blank=True)
    staffLicenseNumber = serializers.CharField(max_length=64, required=False, allow_blank=True)


class AddressSerializer(serializers.Serializer):
    addressLineOne = serializers.CharField(max_length=255)
    addressLineTwo = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=128)
    province = serializers.CharField(max_length=128)
    postalCode = serializers.CharField(max_length=16)
    country = serializers.CharField(max_length=128)
    type = serializers.ChoiceField(choices=AddressType.choices, required=False, allow_null=True)

    def validate_addressLineOne(self, v):
        return clean_text(v)

    def validate_addressLineTwo(self, v):
        return clean_text(v)
