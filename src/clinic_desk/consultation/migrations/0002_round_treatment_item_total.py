"""Compare TreatmentItem totals against quantity * rate rounded to cents.

SQLite evaluates quantity * rate in floating point (3 * 0.10 is
0.30000000000000004), so the unrounded comparison rejected valid lines.
"""

from django.db import migrations, models
from django.db.models import F, Q
from django.db.models.functions import Round


class Migration(migrations.Migration):

    dependencies = [
        ("clinic_consultation", "0001_initial"),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name="treatmentitem",
            name="treatment_item_total_is_quantity_times_rate",
        ),
        migrations.AddConstraint(
            model_name="treatmentitem",
            constraint=models.CheckConstraint(
                condition=Q(total_amount=Round(F("quantity") * F("rate"), 2)),
                name="treatment_item_total_is_quantity_times_rate",
            ),
        ),
    ]
