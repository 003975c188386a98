"""
Database models for the Cancer Companion backend.

The models cover the people involved in a patient's care (users and
their type-specific profiles), shared reference data (cancer types,
specializations, institutions, vitals), the patient's own records
(journals, vital readings) and the task lists that coordinate care.

A task is a tagged union: the base :class:`Task` row carries the common
fields and ``type``; the matching detail row (appointment, medication,
treatment or exercise) holds the type-specific payload.  Detail rows
refuse to save against a task of another type.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class UserType(models.TextChoices):
    PATIENT = 'PATIENT', 'Patient'
    CARETAKER = 'CARETAKER', 'Caretaker'
    DOCTOR = 'DOCTOR', 'Doctor'
    MEDICAL_STAFF = 'MEDICAL_STAFF', 'Medical staff'
    ADMIN = 'ADMIN', 'Administrator'


class Honorific(models.TextChoices):
    MR = 'MR', 'Mr'
    MS = 'MS', 'Ms'
    MRS = 'MRS', 'Mrs'
    DR = 'DR', 'Dr'
    PROF = 'PROF', 'Prof'
    REV = 'REV', 'Rev'


class Gender(models.TextChoices):
    MALE = 'MALE', 'Male'
    FEMALE = 'FEMALE', 'Female'
    OTHER = 'OTHER', 'Other'


class CancerStage(models.TextChoices):
    STAGE_0 = 'STAGE_0', 'Stage 0'
    STAGE_I = 'STAGE_I', 'Stage I'
    STAGE_II = 'STAGE_II', 'Stage II'
    STAGE_III = 'STAGE_III', 'Stage III'
    STAGE_IV = 'STAGE_IV', 'Stage IV'


class Relationship(models.TextChoices):
    FAMILY = 'FAMILY', 'Family'
    FRIEND = 'FRIEND', 'Friend'
    COLLEAGUE = 'COLLEAGUE', 'Colleague'
    CARETAKER = 'CARETAKER', 'Caretaker'
    OTHER = 'OTHER', 'Other'
    ACQUAINTANCE = 'ACQUAINTANCE', 'Acquaintance'


class AddressType(models.TextChoices):
    PERMANENT = 'PERMANENT', 'Permanent'
    CURRENT = 'CURRENT', 'Current'


class TaskType(models.TextChoices):
    GENERAL = 'GENERAL', 'General'
    MEDICATION = 'MEDICATION', 'Medication'
    EXERCISE = 'EXERCISE', 'Exercise'
    APPOINTMENT = 'APPOINTMENT', 'Appointment'
    TREATMENT = 'TREATMENT', 'Treatment'


class TaskPriority(models.TextChoices):
    LOW = 'LOW', 'Low'
    MEDIUM = 'MEDIUM', 'Medium'
    HIGH = 'HIGH', 'High'
    CRITICAL = 'CRITICAL', 'Critical'


class ListPermission(models.TextChoices):
    MANAGER = 'MANAGER', 'Manager'
    MEMBER = 'MEMBER', 'Member'


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class CancerType(models.Model):
    name = models.CharField(max_length=128, unique=True)

    def __str__(self) -> str:
        return self.name


class Specialization(models.Model):
    name = models.CharField(max_length=128, unique=True)

    def __str__(self) -> str:
        return self.name


class Vitals(models.Model):
    """A measurable vital sign, e.g. heart rate in bpm."""
    name = models.CharField(max_length=128, unique=True)
    unit_of_measure = models.CharField(max_length=32)
    description = models.TextField(blank=True)

    class Meta:
        verbose_name_plural = 'vitals'

    def __str__(self) -> str:
        return f"{self.name} ({self.unit_of_measure})"


# ---------------------------------------------------------------------------
# Users and profiles
# ---------------------------------------------------------------------------

class CompanionUserManager(UserManager):
    """Users sign up with an email address which doubles as username."""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        email = self.normalize_email(email or username)
        return super().create_user(email, email=email, password=password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        email = self.normalize_email(email or username)
        extra_fields.setdefault('user_type', UserType.ADMIN)
        return super().create_superuser(email, email=email, password=password, **extra_fields)


class User(AbstractUser):
    """Account plus the person details collected during onboarding.

    ``user_type`` stays empty until onboarding completes; the role
    router sends such users to ``/onboarding``.
    """
    email = models.EmailField(unique=True)
    user_type = models.CharField(max_length=16, choices=UserType.choices, null=True, blank=True, db_index=True)
    honorific = models.CharField(max_length=8, choices=Honorific.choices, null=True, blank=True)
    middle_name = models.CharField(max_length=150, blank=True)
    gender = models.CharField(max_length=8, choices=Gender.choices, null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    objects = CompanionUserManager()

    def display_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        name = ' '.join(p for p in parts if p)
        return name or self.email

    def __str__(self) -> str:
        return f"{self.email} ({self.user_type or 'untyped'})"


class Address(models.Model):
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.CASCADE, related_name='addresses')
    address_line_one = models.CharField(max_length=255)
    address_line_two = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=128)
    province = models.CharField(max_length=128)
    postal_code = models.CharField(max_length=16)
    country = models.CharField(max_length=128)
    type = models.CharField(max_length=16, choices=AddressType.choices, null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.address_line_one}, {self.city}"


class MedicalInstitution(models.Model):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32)
    address = models.ForeignKey(Address, null=True, blank=True, on_delete=models.SET_NULL, related_name='institutions')

    def __str__(self) -> str:
        return self.name


class Patient(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient')
    cancer_type = models.ForeignKey(CancerType, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients')
    cancer_stage = models.CharField(max_length=16, choices=CancerStage.choices, default=CancerStage.STAGE_0)
    diagnosis_date = models.DateField(null=True, blank=True)

    def __str__(self) -> str:
        return f"Patient {self.user.display_name()}"


class Doctor(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor')
    license_number = models.CharField(max_length=64)
    specialization = models.ForeignKey(
        Specialization, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors'
    )

    def __str__(self) -> str:
        return f"Dr. {self.user.display_name()}"


class Caretaker(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='caretaker')
    relationship_to_patient = models.CharField(
        max_length=16, choices=Relationship.choices, default=Relationship.OTHER
    )
    qualifications = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"Caretaker {self.user.display_name()}"


class MedicalStaff(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='medical_staff')
    medical_institution = models.ForeignKey(
        MedicalInstitution, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )
    designation = models.CharField(max_length=128, blank=True)
    staff_license_number = models.CharField(max_length=64, blank=True)

    class Meta:
        verbose_name_plural = 'medical staff'

    def __str__(self) -> str:
        return f"Staff {self.user.display_name()}"


# ---------------------------------------------------------------------------
# Patient records
# ---------------------------------------------------------------------------

class VitalReading(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='vital_readings')
    vitals = models.ForeignKey(Vitals, on_delete=models.CASCADE, related_name='readings')
    value = models.FloatField()
    timestamp = models.DateTimeField()
    recorded_by = models.ForeignKey(
        User, null=True, on_delete=models.SET_NULL, related_name='vital_readings_recorded'
    )
    last_edited_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='vital_readings_edited'
    )

    class Meta:
        indexes = [models.Index(fields=['patient', 'timestamp'], name='care_vitalr_patient_6f0f7c_idx')]

    def __str__(self) -> str:
        return f"{self.vitals.name}={self.value} for {self.patient_id}"


class JournalEntry(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='journal_entries')
    title = models.CharField(max_length=255)
    content = models.TextField()
    mood = models.CharField(max_length=64, blank=True)
    date_entered = models.DateTimeField()

    class Meta:
        verbose_name_plural = 'journal entries'

    def __str__(self) -> str:
        return self.title


class JournalTag(models.Model):
    journal = models.ForeignKey(JournalEntry, on_delete=models.CASCADE, related_name='tags')
    value = models.CharField(max_length=64)
    color = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"#{self.value}"


# ---------------------------------------------------------------------------
# Task lists and tasks
# ---------------------------------------------------------------------------

class TaskList(models.Model):
    """A patient's collection of care tasks, shared through memberships.

    The completed/uncompleted counters are denormalized and recomputed by
    :func:`care.services.tasklists.refresh_counts` after task mutations.
    """
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='task_lists')
    completed_tasks_count = models.PositiveIntegerField(default=0)
    uncompleted_tasks_count = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return f"TaskList #{self.id} of patient {self.patient_id}"


class ListMembership(models.Model):
    """Grants a user MANAGER or MEMBER rights on a task list.

    ``start_date``/``end_date`` bound the validity window; a null bound
    is open.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='list_memberships')
    task_list = models.ForeignKey(TaskList, on_delete=models.CASCADE, related_name='memberships')
    permission = models.CharField(max_length=8, choices=ListPermission.choices, default=ListPermission.MEMBER)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        unique_together = [('user', 'task_list')]

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({'end_date': 'End date must not precede start date.'})

    def __str__(self) -> str:
        return f"{self.user} on list {self.task_list_id} as {self.permission}"


class Task(models.Model):
    task_list = models.ForeignKey(TaskList, on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=255)
    type = models.CharField(max_length=16, choices=TaskType.choices, default=TaskType.GENERAL)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=8, choices=TaskPriority.choices, default=TaskPriority.MEDIUM)
    due_date = models.DateTimeField(null=True, blank=True)
    finish_date = models.DateTimeField(null=True, blank=True)
    is_done = models.BooleanField(default=False, db_index=True)
    is_archived = models.BooleanField(default=False, db_index=True)
    prerequisite_task = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='dependent_tasks'
    )
    parent_task = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='subtasks'
    )
    task_creator = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='tasks_created')
    created_at = models.DateTimeField(auto_now_add=True)
    last_modified_on = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['task_list', 'is_done', 'is_archived'], name='care_task_task_li_5a3b1e_idx'),
        ]

    def clean(self):
        errors = {}
        for field in ('prerequisite_task', 'parent_task'):
            related = getattr(self, field)
            if related is None:
                continue
            if self.pk and related.pk == self.pk:
                errors[field] = 'A task cannot reference itself.'
            elif related.task_list_id != self.task_list_id:
                errors[field] = 'Related task must belong to the same task list.'
        if errors:
            raise ValidationError(errors)

    def __str__(self) -> str:
        return f"{self.title} (#{self.id})"


class TaskDetail(models.Model):
    """Base for per-type detail rows; pins the task type it belongs to."""
    task_type: str = ''

    class Meta:
        abstract = True

    def check_task_type(self) -> None:
        if self.task.type != self.task_type:
            raise ValidationError(
                f"{type(self).__name__} requires a {self.task_type} task, got {self.task.type}"
            )

    def save(self, *args, **kwargs):
        self.check_task_type()
        super().save(*args, **kwargs)


class AppointmentTask(TaskDetail):
    task_type = TaskType.APPOINTMENT

    task = models.OneToOneField(Task, on_delete=models.CASCADE, related_name='appointment')
    doctor = models.ForeignKey(Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    appointment_date = models.DateTimeField()
    purpose = models.CharField(max_length=255)
    doctors_notes = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"Appointment for task {self.task_id}"


class MedicationTask(TaskDetail):
    task_type = TaskType.MEDICATION

    task = models.OneToOneField(Task, on_delete=models.CASCADE, related_name='medication')
    name = models.CharField(max_length=255)
    medicine_color = models.CharField(max_length=64, blank=True)
    dosage = models.FloatField(validators=[MinValueValidator(0.1), MaxValueValidator(1000)])
    instructions = models.TextField(blank=True)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.name} {self.dosage}mg"


class MedicationTaskSchedule(models.Model):
    medication_task = models.ForeignKey(MedicationTask, on_delete=models.CASCADE, related_name='schedules')
    time = models.TimeField()
    is_taken = models.BooleanField(default=False)

    class Meta:
        ordering = ['time']

    def __str__(self) -> str:
        return f"{self.medication_task_id}@{self.time:%H:%M}"


class TreatmentTask(TaskDetail):
    task_type = TaskType.TREATMENT

    task = models.OneToOneField(Task, on_delete=models.CASCADE, related_name='treatment')
    medical_institution = models.ForeignKey(
        MedicalInstitution, null=True, blank=True, on_delete=models.SET_NULL, related_name='treatments'
    )
    treatment_type = models.CharField(max_length=128)
    date = models.DateTimeField()
    dosage = models.FloatField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.treatment_type} for task {self.task_id}"


class ExerciseTask(TaskDetail):
    task_type = TaskType.EXERCISE

    task = models.OneToOneField(Task, on_delete=models.CASCADE, related_name='exercise')
    name = models.CharField(max_length=255)
    sets = models.PositiveIntegerField(default=0)
    reps = models.PositiveIntegerField(default=0)
    duration_per_set = models.FloatField(null=True, blank=True)
    duration_per_rep = models.FloatField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.name} {self.sets}x{self.reps}"


class Comment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    author = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='comments')
    content = models.TextField()
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Comment {self.id} on task {self.task_id}"


class TaskTag(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='tags')
    value = models.CharField(max_length=64)
    color = models.CharField(max_length=64, blank=True)
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='task_tags')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"#{self.value}"


# ---------------------------------------------------------------------------
# Auth & audit
# ---------------------------------------------------------------------------

class OAuthAccount(models.Model):
    """Binds an external identity (e.g. Google ``sub``) to a local user."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='oauth_accounts')
    provider = models.CharField(max_length=32)
    subject = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    last_login_at = models.DateTimeField(blank=True, null=True)
    last_login_ip = models.GenericIPAddressField(blank=True, null=True)

    class Meta:
        unique_together = [('provider', 'subject')]

    def __str__(self) -> str:
        return f"{self.provider}:{self.subject} -> {self.user_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='care_audite_action_2c1f0d_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='care_audite_object__8e4b2a_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
