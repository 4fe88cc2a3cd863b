"""Django app configuration for queue module."""

from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured


class QueueConfig(AppConfig):
    """Configuration for the daily patient queue."""

    name = "clinic_desk.queue"
    label = "clinic_queue"
    verbose_name = "Patient Queue"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from .graph import (
            INITIAL_STATUSES,
            QUEUE_STATUSES,
            QUEUE_TRANSITIONS,
            TERMINAL_STATUSES,
            validate_queue_graph,
        )

        errors = validate_queue_graph(
            QUEUE_STATUSES, QUEUE_TRANSITIONS, INITIAL_STATUSES, TERMINAL_STATUSES
        )
        if errors:
            raise ImproperlyConfigured("Invalid queue graph: " + "; ".join(errors))
