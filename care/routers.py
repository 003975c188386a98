"""
URL mappings for the Cancer Companion API and pages.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``).
Role dashboards sit at the bare role prefixes so that
:class:`care.middleware.RoleRouterMiddleware` can route page requests.
"""
from django.urls import path, include

from .auth_views import (
    google_callback_view,
    google_start_view,
    onboarding_view,
    refresh_view,
    session_view,
    sign_in_view,
    sign_out_view,
    sign_up_view,
)
from .views import clinical, dashboards, health, profiles, records, reference
from .views import task_lists as lists
from .views import tasks

urlpatterns = [
    # Infrastructure
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Auth API
    path('api/auth/sign-up', sign_up_view),
    path('api/auth/sign-in', sign_in_view),
    path('api/auth/sign-out', sign_out_view),
    path('api/auth/refresh', refresh_view),
    path('api/auth/session', session_view),
    path('api/auth/oauth/google', google_start_view),
    path('api/auth/oauth/google/callback', google_callback_view),

    # Pages
    path('sign-in', sign_in_view),
    path('sign-up', sign_up_view),
    path('onboarding', onboarding_view),
    path('patient', dashboards.patient_dashboard),
    path('caretaker', dashboards.caretaker_dashboard),
    path('doctor', dashboards.doctor_dashboard),
    path('medical-staff', dashboards.medical_staff_dashboard),
    path('admin', dashboards.admin_dashboard),

    # Profiles
    path('api/profile', profiles.profile_view),
    path('api/profile/patient', profiles.patient_profile),
    path('api/profile/doctor', profiles.doctor_profile),
    path('api/profile/caretaker', profiles.caretaker_profile),
    path('api/profile/medical-staff', profiles.medical_staff_profile),
    path('api/addresses', profiles.addresses),
    path('api/addresses/<int:pk>', profiles.address_detail),

    # Reference data
    path('api/cancer-types', reference.cancer_types),
    path('api/cancer-types/<int:pk>', reference.cancer_type_detail),
    path('api/specializations', reference.specializations),
    path('api/specializations/<int:pk>', reference.specialization_detail),
    path('api/institutions', reference.institutions),
    path('api/institutions/<int:pk>', reference.institution_detail),
    path('api/vitals', reference.vitals_list),
    path('api/vitals/<int:pk>', reference.vitals_detail),

    # Patient records
    path('api/vital-readings', records.vital_readings),
    path('api/vital-readings/<int:pk>', records.vital_reading_detail),
    path('api/journal-entries', records.journal_entries),
    path('api/journal-entries/<int:pk>', records.journal_entry_detail),
    path('api/journal-entries/<int:pk>/tags', records.journal_tags),
    path('api/journal-tags/<int:pk>', records.journal_tag_detail),

    # Task lists & memberships
    path('api/task-lists', lists.task_lists),
    path('api/task-lists/<int:pk>', lists.task_list_detail),
    path('api/task-lists/<int:pk>/tasks', lists.task_list_tasks),
    path('api/task-lists/<int:pk>/members', lists.task_list_members),
    path('api/memberships/<int:pk>', lists.membership_detail),

    # Tasks
    path('api/tasks/<int:pk>', tasks.task_detail),
    path('api/tasks/<int:pk>/complete', tasks.task_complete),
    path('api/tasks/<int:pk>/undo-complete', tasks.task_undo_complete),
    path('api/tasks/<int:pk>/related', tasks.task_related),
    path('api/tasks/<int:pk>/comments', tasks.task_comments),
    path('api/comments/<int:pk>', tasks.comment_detail),
    path('api/tasks/<int:pk>/tags', tasks.task_tags),
    path('api/task-tags/<int:pk>', tasks.task_tag_detail),

    # Medication schedules
    path('api/medication-tasks/<int:pk>/schedules', tasks.medication_schedules),
    path('api/schedules/<int:pk>', tasks.schedule_detail),
    path('api/schedules/<int:pk>/taken', tasks.schedule_taken),
    path('api/schedules/<int:pk>/undo-taken', tasks.schedule_undo_taken),

    # Doctor & medical staff
    path('api/appointments/<int:pk>/notes', clinical.appointment_notes),
    path('api/treatments', clinical.treatments),
    path('api/treatments/<int:pk>', clinical.treatment_detail),
]
