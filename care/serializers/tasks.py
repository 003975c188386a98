from rest_framework import serializers

from care.models import ListPermission, TaskPriority, TaskType
from care.serializers.common import clean_text
from care.services.tasklists import VIEWS


class TaskSerializer(serializers.Serializer):
    """Common task fields plus the fields of every variant.

    Only the fields of the variant named by ``type`` are used; they are
    checked when the variant is built.
    """
    title = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=TaskType.choices, default=TaskType.GENERAL)
    description = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False)
    dueDate = serializers.DateTimeField(required=False, allow_null=True)
    isArchived = serializers.BooleanField(required=False)
    prerequisiteTaskId = serializers.IntegerField(required=False, allow_null=True)
    parentTaskId = serializers.IntegerField(required=False, allow_null=True)
    # appointment
    doctorId = serializers.IntegerField(required=False, allow_null=True)
    appointmentDate = serializers.DateTimeField(required=False)
    purpose = serializers.CharField(max_length=255, required=False)
    doctorsNotes = serializers.CharField(required=False, allow_blank=True)
    # medication / exercise
    name = serializers.CharField(max_length=255, required=False)
    medicineColor = serializers.CharField(max_length=64, required=False, allow_blank=True)
    dosage = serializers.FloatField(required=False, allow_null=True)
    instructions = serializers.CharField(required=False, allow_blank=True)
    startDate = serializers.DateTimeField(required=False, allow_null=True)
    endDate = serializers.DateTimeField(required=False, allow_null=True)
    times = serializers.ListField(child=serializers.JSONField(), required=False)
    # treatment
    medicalInstitutionId = serializers.IntegerField(required=False, allow_null=True)
    treatmentType = serializers.CharField(max_length=128, required=False)
    date = serializers.DateTimeField(required=False)
    # exercise
    sets = serializers.IntegerField(min_value=0, required=False)
    reps = serializers.IntegerField(min_value=0, required=False)
    durationPerSet = serializers.FloatField(min_value=0, required=False, allow_null=True)
    durationPerRep = serializers.FloatField(min_value=0, required=False, allow_null=True)

    def validate_title(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Title is required')
        return v

    def validate_description(self, v):
        return clean_text(v)

    def validate_instructions(self, v):
        return clean_text(v)

    def validate_doctorsNotes(self, v):
        return clean_text(v)


# request key -> Task model field
TASK_FIELD_MAP = {
    'title': 'title',
    'description': 'description',
    'priority': 'priority',
    'dueDate': 'due_date',
    'isArchived': 'is_archived',
    'prerequisiteTaskId': 'prerequisite_task_id',
    'parentTaskId': 'parent_task_id',
}


def task_fields(vd: dict) -> dict:
    return {attr: vd[key] for key, attr in TASK_FIELD_MAP.items() if key in vd}


class TaskViewQuerySerializer(serializers.Serializer):
    view = serializers.ChoiceField(choices=list(VIEWS), required=False, default='active')


class MembershipCreateSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1, required=False)
    email = serializers.EmailField(required=False)
    permission = serializers.ChoiceField(choices=ListPermission.choices, default=ListPermission.MEMBER)
    startDate = serializers.DateField(required=False, allow_null=True)
    endDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('userId') and not attrs.get('email'):
            raise serializers.ValidationError('userId or email is required')
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': 'End date must not precede start date'})
        return attrs


class MembershipUpdateSerializer(serializers.Serializer):
    permission = serializers.ChoiceField(choices=ListPermission.choices, required=False)
    startDate = serializers.DateField(required=False, allow_null=True)
    endDate = serializers.DateField(required=False, allow_null=True)


class CommentSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=4000)

    def validate_content(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Comment cannot be empty')
        return v


class ScheduleTimesSerializer(serializers.Serializer):
    times = serializers.ListField(child=serializers.JSONField(), allow_empty=False)


class AppointmentNotesSerializer(serializers.Serializer):
    doctorsNotes = serializers.CharField(allow_blank=True)

    def validate_doctorsNotes(self, v):
        return clean_text(v)


class TreatmentCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False)
    dueDate = serializers.DateTimeField(required=False, allow_null=True)
    treatmentType = serializers.CharField(max_length=128)
    date = serializers.DateTimeField()
    dosage = serializers.FloatField(min_value=0, required=False, allow_null=True)

    def validate_title(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Title is required')
        return v

    def validate_description(self, v):
        return clean_text(v)


class TreatmentUpdateSerializer(serializers.Serializer):
    treatmentType = serializers.CharField(max_length=128, required=False)
    date = serializers.DateTimeField(required=False)
    dosage = serializers.FloatField(min_value=0, required=False, allow_null=True)
