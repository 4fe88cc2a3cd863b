"""Tests for tier price resolution."""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from clinic_desk.money import Money
from clinic_desk.pricing.exceptions import NoPriceFoundError
from clinic_desk.pricing.models import MedicalService, Medication, PriceTier
from clinic_desk.pricing.selectors import (
    format_price_with_tier,
    get_active_tiers,
    get_price_list,
    resolve_price,
    resolve_price_for_patient,
)
from clinic_desk.pricing.services import clear_tier_price, seed_default_tiers, set_tier_price


@pytest.mark.django_db
class TestResolvePrice:
    def test_override_for_matching_tier(self, paracetamol, self_pay, insurance):
        """Override applies only to its own tier."""
        set_tier_price(paracetamol, insurance, Decimal("8.00"))

        insured = resolve_price(paracetamol, insurance)
        assert insured.price == Money(Decimal("8.00"), "MYR")
        assert insured.source == "tier"
        assert insured.is_tier_price
        assert insured.tier_name == "Insurance"

        walk_in = resolve_price(paracetamol, self_pay)
        assert walk_in.price == Money(Decimal("10.00"), "MYR")
        assert walk_in.source == "base"
        assert walk_in.warning is None

    def test_no_tier_falls_back_with_warning(self, paracetamol):
        resolved = resolve_price(paracetamol, None)

        assert resolved.price.amount == Decimal("10.00")
        assert resolved.source == "base"
        assert resolved.tier_missing is True
        assert resolved.warning == "No pricing tier assigned to this patient; base price applied"

    def test_patient_tier_used(self, paracetamol, insurance, make_patient):
        set_tier_price(paracetamol, insurance, Decimal("8.00"))

        assert resolve_price_for_patient(paracetamol, make_patient(tier=insurance)).source == "tier"
        untiered = resolve_price_for_patient(paracetamol, make_patient(first_name="Ali"))
        assert untiered.source == "base"
        assert untiered.tier_missing is True

    def test_undefined_base_price_raises(self, self_pay):
        item = Medication.objects.create(name="Unpriced Syrup")

        with pytest.raises(NoPriceFoundError) as exc_info:
            resolve_price(item, self_pay)

        assert exc_info.value.item == item
        assert "Unpriced Syrup" in str(exc_info.value)

    def test_undefined_base_price_with_override_resolves(self, self_pay):
        item = Medication.objects.create(name="Unpriced Syrup")
        set_tier_price(item, self_pay, Decimal("4.50"))

        assert resolve_price(item, self_pay).price.amount == Decimal("4.50")

    def test_zero_base_price_is_valid(self, self_pay):
        item = MedicalService.objects.create(name="Follow-up", base_price=Decimal("0.00"))

        resolved = resolve_price(item, self_pay)

        assert resolved.price.is_zero()
        assert resolved.source == "base"

    def test_service_override(self, consultation_fee, insurance):
        set_tier_price(consultation_fee, insurance, Decimal("25.00"))
        assert resolve_price(consultation_fee, insurance).price.amount == Decimal("25.00")

    def test_set_tier_price_updates_in_place(self, paracetamol, insurance):
        set_tier_price(paracetamol, insurance, Decimal("8.00"))
        set_tier_price(paracetamol, insurance, Decimal("7.00"))

        assert paracetamol.tier_prices.count() == 1
        assert resolve_price(paracetamol, insurance).price.amount == Decimal("7.00")

    def test_clear_tier_price(self, paracetamol, insurance):
        set_tier_price(paracetamol, insurance, Decimal("8.00"))

        assert clear_tier_price(paracetamol, insurance) is True
        assert clear_tier_price(paracetamol, insurance) is False
        assert resolve_price(paracetamol, insurance).source == "base"


@pytest.mark.django_db
class TestPriceList:
    def test_lists_active_items(self, paracetamol, consultation_fee, insurance):
        set_tier_price(paracetamol, insurance, Decimal("8.00"))
        Medication.objects.create(name="Unpriced Syrup")
        MedicalService.objects.create(name="Retired", base_price=Decimal("5.00"), is_active=False)

        rows = get_price_list(insurance)

        assert [(r["name"], r["price"], r["source"]) for r in rows] == [
            ("Paracetamol 500mg", "8.00", "tier"),
            ("Unpriced Syrup", None, None),
            ("General Consultation", "30.00", "base"),
        ]

    def test_active_tiers(self, self_pay, insurance):
        PriceTier.objects.create(tier_name="Legacy", is_active=False)
        assert [t.tier_name for t in get_active_tiers()] == ["Insurance", "Self-Pay"]


class TestFormatPrice:
    def test_format_with_tier(self):
        assert format_price_with_tier(Money(Decimal("10"), "MYR"), "Insurance") == "RM10.00 (Insurance Rate)"


@pytest.mark.django_db
class TestSeedTiers:
    def test_seed_is_idempotent(self):
        seed_default_tiers()
        seed_default_tiers()

        assert sorted(PriceTier.objects.values_list("tier_name", flat=True)) == [
            "Corporate", "Government Panel", "Insurance", "Self-Pay",
        ]

    def test_management_command(self):
        out = StringIO()
        call_command("seed_price_tiers", stdout=out)

        assert PriceTier.objects.count() == 4
        assert "4 price tiers available" in out.getvalue()
