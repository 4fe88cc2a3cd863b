"""Django app configuration for dispensary module."""

from django.apps import AppConfig


class DispensaryConfig(AppConfig):
    """Configuration for dispensary invoicing and payments."""

    name = "clinic_desk.dispensary"
    label = "clinic_dispensary"
    verbose_name = "Dispensary"
    default_auto_field = "django.db.models.BigAutoField"
