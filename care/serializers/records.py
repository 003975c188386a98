from rest_framework import serializers

from care.serializers.common import clean_text


class ReadingSerializer(serializers.Serializer):
    vitalsId = serializers.IntegerField(min_value=1)
    value = serializers.FloatField()


class VitalReadingBatchSerializer(serializers.Serializer):
    """One form submission: a value per vital sign, all at one timestamp."""
    patientId = serializers.IntegerField(min_value=1, required=False)
    timestamp = serializers.DateTimeField()
    readings = ReadingSerializer(many=True, allow_empty=False)

    def validate_readings(self, v):
        ids = [r['vitalsId'] for r in v]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError('Each vital sign may appear only once')
        return v


class VitalReadingUpdateSerializer(serializers.Serializer):
    value = serializers.FloatField(required=False)
    timestamp = serializers.DateTimeField(required=False)


class JournalEntrySerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    content = serializers.CharField()
    mood = serializers.CharField(max_length=64, required=False, allow_blank=True)
    dateEntered = serializers.DateTimeField(required=False)

    def validate_title(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Title is required')
        return v

    def validate_content(self, v):
        return clean_text(v)

    def validate_mood(self, v):
        return clean_text(v)


class TagSerializer(serializers.Serializer):
    value = serializers.CharField(max_length=64)
    color = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_value(self, v):
        v = clean_text(v).lstrip('#')
        if not v:
            raise serializers.ValidationError('Tag value is required')
        return v
