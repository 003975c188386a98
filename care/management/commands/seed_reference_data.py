"""
Management command to seed the shared reference tables.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from care.models import CancerType, Specialization, Vitals

CANCER_TYPES = [
    'Breast cancer', 'Lung cancer', 'Colorectal cancer', 'Prostate cancer', 'Skin cancer',
    'Leukemia', 'Lymphoma', 'Pancreatic cancer', 'Ovarian cancer', 'Thyroid cancer',
]

SPECIALIZATIONS = [
    'Medical oncology', 'Radiation oncology', 'Surgical oncology', 'Hematology',
    'Pediatric oncology', 'Gynecologic oncology', 'Palliative care',
]

VITALS = [
    ('Heart rate', 'bpm', 'Beats per minute at rest'),
    ('Systolic blood pressure', 'mmHg', ''),
    ('Diastolic blood pressure', 'mmHg', ''),
    ('Body temperature', '°C', ''),
    ('Respiratory rate', 'breaths/min', ''),
    ('Oxygen saturation', '%', 'SpO2'),
    ('Weight', 'kg', ''),
    ('Blood glucose', 'mg/dL', ''),
]


class Command(BaseCommand):
    help = 'Seed cancer types, specializations and common vital signs (idempotent)'

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for name in CANCER_TYPES:
            created += CancerType.objects.get_or_create(name=name)[1]
        for name in SPECIALIZATIONS:
            created += Specialization.objects.get_or_create(name=name)[1]
        for name, unit, description in VITALS:
            created += Vitals.objects.get_or_create(
                name=name, defaults={'unit_of_measure': unit, 'description': description}
            )[1]
        self.stdout.write(self.style.SUCCESS(f'Reference data seeded ({created} new rows).'))
