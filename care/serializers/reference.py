from rest_framework import serializers

from care.serializers.common import clean_text
from care.serializers.profiles import AddressSerializer


class NamedSerializer(serializers.Serializer):
    """Cancer types and specializations."""
    name = serializers.CharField(max_length=128)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v


class InstitutionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32)
    address = AddressSerializer(required=False, allow_null=True)

    def validate_name(self, v):
        return clean_text(v)


class VitalsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    unitOfMeasure = serializers.CharField(max_length=32)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate_description(self, v):
        return clean_text(v)
