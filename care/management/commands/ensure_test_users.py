# care/management/commands/ensure_test_users.py
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from care.models import (
    Caretaker,
    Doctor,
    MedicalInstitution,
    MedicalStaff,
    Patient,
    User,
    UserType,
)
from care.services.tasklists import ensure_task_list

PASSWORD = "Companion#2024"

TEST_SET = [
    ("admin@companion.test", UserType.ADMIN),
    ("patient@companion.test", UserType.PATIENT),
    ("caretaker@companion.test", UserType.CARETAKER),
    ("doctor@companion.test", UserType.DOCTOR),
    ("staff@companion.test", UserType.MEDICAL_STAFF),
]


class Command(BaseCommand):
    help = f"Ensure one demo user per user type exists with password={PASSWORD} (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        for email, user_type in TEST_SET:
            u, created = User.objects.get_or_create(
                username=email,
                defaults={"email": email, "user_type": user_type,
                          "password": make_password(PASSWORD), "is_active": True},
            )
            if not created:
                u.password = make_password(PASSWORD)
                u.user_type = user_type
                u.is_active = True
                u.save(update_fields=["password", "user_type", "is_active"])
            self._ensure_profile(u)
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({user_type})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))

    def _ensure_profile(self, user):
        if user.user_type == UserType.PATIENT:
            patient, _ = Patient.objects.get_or_create(user=user)
            ensure_task_list(patient)
        elif user.user_type == UserType.DOCTOR:
            Doctor.objects.get_or_create(user=user, defaults={"license_number": "DEMO-0001"})
        elif user.user_type == UserType.CARETAKER:
            Caretaker.objects.get_or_create(user=user)
        elif user.user_type == UserType.MEDICAL_STAFF:
            institution, _ = MedicalInstitution.objects.get_or_create(
                name="Demo Cancer Centre", defaults={"phone": "000-000-0000"}
            )
            MedicalStaff.objects.get_or_create(user=user, defaults={"medical_institution": institution})
