"""Care coordination app for the Cancer Companion backend.

This package holds the models, services, serializers, views and route
registrations behind the patient, caretaker, doctor, medical-staff and
admin dashboards.
"""
