"""Django app configuration for pricing module."""

from django.apps import AppConfig


class PricingConfig(AppConfig):
    """Configuration for tier pricing module."""

    name = "clinic_desk.pricing"
    label = "clinic_pricing"
    verbose_name = "Tier Pricing"
    default_auto_field = "django.db.models.BigAutoField"
