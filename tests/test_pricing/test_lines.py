"""Tests du calcul des montants de ligne."""

from decimal import Decimal

import pytest

from facturation_bj.errors import InvalidLineInput
from facturation_bj.pricing.lines import LineAmounts, compute_line


class TestComputeLine:
    """Chaîne HT → remise → TVA → TTC."""

    def test_reference_line(self):
        """2 × 50 000 HT à 18 % : 100 000 / 18 000 / 118 000."""
        amounts = compute_line(Decimal("2"), Decimal("50000"), Decimal("0"), Decimal("18"))
        assert amounts == LineAmounts(
            base_ht=Decimal("100000.00"),
            discount_amount=Decimal("0.00"),
            total_ht=Decimal("100000.00"),
            total_tva=Decimal("18000.00"),
            total_ttc=Decimal("118000.00"),
        )

    def test_discount(self):
        amounts = compute_line("3", "1000", "10", "18")
        assert amounts.base_ht == Decimal("3000.00")
        assert amounts.discount_amount == Decimal("300.00")
        assert amounts.total_ht == Decimal("2700.00")
        assert amounts.total_tva == Decimal("486.00")
        assert amounts.total_ttc == Decimal("3186.00")

    def test_each_step_rounded_half_up(self):
        """La base est arrondie avant la remise, la TVA après."""
        amounts = compute_line("3", "0.335", "0", "18")
        assert amounts.base_ht == Decimal("1.01")
        assert amounts.total_tva == Decimal("0.18")
        assert amounts.total_ttc == amounts.total_ht + amounts.total_tva

    def test_exempt_rate(self):
        amounts = compute_line("1", "5000", "0", "0")
        assert amounts.total_tva == Decimal("0.00")
        assert amounts.total_ttc == Decimal("5000.00")

    def test_full_discount(self):
        amounts = compute_line("1", "5000", "100", "18")
        assert amounts.total_ht == Decimal("0.00")
        assert amounts.total_ttc == Decimal("0.00")

    def test_free_item(self):
        assert compute_line("1", "0").total_ttc == Decimal("0.00")

    def test_fractional_quantity(self):
        assert compute_line("1.5", "1000", "0", "18").total_ht == Decimal("1500.00")

    def test_defaults(self):
        """Remise nulle et TVA 18 % par défaut."""
        assert compute_line("1", "100").total_tva == Decimal("18.00")


class TestComputeLineErrors:
    """Valeurs hors bornes : InvalidLineInput avec champ et position."""

    @pytest.mark.parametrize("quantity", ["0", "-1"])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line(quantity, "100", position=2)
        assert exc_info.value.field == "quantity"
        assert exc_info.value.position == 2

    def test_negative_price(self):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line("1", "-0.01")
        assert exc_info.value.field == "unit_price_ht"

    @pytest.mark.parametrize("discount", ["-1", "100.01"])
    def test_discount_bounds(self, discount):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line("1", "100", discount)
        assert exc_info.value.field == "discount_percent"

    @pytest.mark.parametrize("rate", ["-5", "101"])
    def test_tva_rate_bounds(self, rate):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line("1", "100", "0", rate)
        assert exc_info.value.field == "tva_rate"

    def test_float_refused(self):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line(1.5, "100")
        assert exc_info.value.field == "quantity"

    def test_non_numeric(self):
        with pytest.raises(InvalidLineInput) as exc_info:
            compute_line("1", "cent")
        assert exc_info.value.field == "unit_price_ht"
