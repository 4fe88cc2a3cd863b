"""Django app configuration for consultation module."""

from django.apps import AppConfig


class ConsultationConfig(AppConfig):
    """Configuration for consultation and treatment recording."""

    name = "clinic_desk.consultation"
    label = "clinic_consultation"
    verbose_name = "Consultations"
    default_auto_field = "django.db.models.BigAutoField"
