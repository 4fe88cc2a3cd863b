# Generated manually for clinic_desk.queue

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import clinic_desk.queue.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("clinic_patients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="QueueCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("queue_date", models.DateField(unique=True)),
                ("current_value", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="QueueEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("queue_number", models.CharField(max_length=20)),
                ("queue_date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("waiting", "Waiting"),
                            ("urgent", "Urgent"),
                            ("in_consultation", "In Consultation"),
                            ("dispensary", "Dispensary"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="waiting",
                        max_length=20,
                    ),
                ),
                ("checked_in_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("consultation_started_at", models.DateTimeField(blank=True, null=True)),
                ("consultation_completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("self_pay", "Self-Pay"),
                            ("insurance", "Insurance"),
                            ("company", "Company"),
                            ("government", "Government"),
                        ],
                        default="self_pay",
                        max_length=20,
                    ),
                ),
                ("visit_reason", models.CharField(blank=True, max_length=255)),
                (
                    "estimated_consultation_duration",
                    models.PositiveIntegerField(
                        default=clinic_desk.queue.models.default_consultation_minutes,
                        help_text="Minutes",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(default=0, help_text="Incremented on every status change"),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="queue_entries",
                        to="clinic_patients.patient",
                    ),
                ),
                (
                    "assigned_doctor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="queue_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["queue_date", "checked_in_at"],
                "verbose_name_plural": "queue entries",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("queue_date", "queue_number"),
                        name="unique_queue_number_per_day",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["queue_date", "status"], name="queue_date_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QueueTransition",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("from_status", models.CharField(max_length=20)),
                ("to_status", models.CharField(max_length=20)),
                ("transitioned_at", models.DateTimeField(auto_now_add=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transitions",
                        to="clinic_queue.queueentry",
                    ),
                ),
                (
                    "transitioned_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["transitioned_at"],
            },
        ),
    ]
