"""Seed the default price tiers."""

from django.core.management.base import BaseCommand

from clinic_desk.pricing.services import seed_default_tiers


class Command(BaseCommand):
    help = "Create the default price tiers (Self-Pay, Insurance, Corporate, Government Panel)"

    def handle(self, *args, **options):
        tiers = seed_default_tiers()
        for tier in tiers:
            self.stdout.write(f"  - {tier.tier_name}")
        self.stdout.write(self.style.SUCCESS(f"{len(tiers)} price tiers available"))
