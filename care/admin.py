"""
Django admin registrations for the care models.

The admin site is mounted at ``/django-admin/`` (``/admin`` is the
ADMIN users' dashboard).  Configuration is kept minimal: list displays
and search fields for the rows staff most often need to inspect.
"""

from django.contrib import admin

from .models import (
    Address,
    AppointmentTask,
    AuditEvent,
    CancerType,
    Caretaker,
    Comment,
    Doctor,
    ExerciseTask,
    JournalEntry,
    ListMembership,
    MedicalInstitution,
    MedicalStaff,
    MedicationTask,
    MedicationTaskSchedule,
    OAuthAccount,
    Patient,
    Specialization,
    Task,
    TaskList,
    TaskTag,
    TreatmentTask,
    User,
    VitalReading,
    Vitals,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'user_type', 'first_name', 'last_name', 'is_staff', 'is_active')
    list_filter = ('user_type', 'is_staff', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('user', 'cancer_type', 'cancer_stage', 'diagnosis_date')
    list_filter = ('cancer_stage', 'cancer_type')
    search_fields = ('user__email', 'user__first_name', 'user__last_name')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'license_number', 'specialization')
    search_fields = ('user__email', 'license_number')


@admin.register(Caretaker)
class CaretakerAdmin(admin.ModelAdmin):
    list_display = ('user', 'relationship_to_patient')
    search_fields = ('user__email',)


@admin.register(MedicalStaff)
class MedicalStaffAdmin(admin.ModelAdmin):
    list_display = ('user', 'medical_institution', 'designation')
    list_filter = ('medical_institution',)
    search_fields = ('user__email', 'staff_license_number')


@admin.register(TaskList)
class TaskListAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'completed_tasks_count', 'uncompleted_tasks_count')


@admin.register(ListMembership)
class ListMembershipAdmin(admin.ModelAdmin):
    list_display = ('user', 'task_list', 'permission', 'start_date', 'end_date')
    list_filter = ('permission',)
    search_fields = ('user__email',)


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'type', 'priority', 'is_done', 'is_archived', 'task_list', 'due_date')
    list_filter = ('type', 'priority', 'is_done', 'is_archived')
    search_fields = ('title', 'description')


@admin.register(MedicationTaskSchedule)
class MedicationTaskScheduleAdmin(admin.ModelAdmin):
    list_display = ('medication_task', 'time', 'is_taken')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('user__email',)


@admin.register(OAuthAccount)
class OAuthAccountAdmin(admin.ModelAdmin):
    list_display = ('provider', 'subject', 'user', 'last_login_at')
    search_fields = ('subject', 'email', 'user__email')


admin.site.register([
    Address, MedicalInstitution, CancerType, Specialization, Vitals, VitalReading, JournalEntry,
    AppointmentTask, MedicationTask, TreatmentTask, ExerciseTask, Comment, TaskTag,
])
