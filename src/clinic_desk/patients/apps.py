"""Django app configuration for patients module."""

from django.apps import AppConfig


class PatientsConfig(AppConfig):
    """Configuration for patient registration module."""

    name = "clinic_desk.patients"
    label = "clinic_patients"
    verbose_name = "Patients"
    default_auto_field = "django.db.models.BigAutoField"
