"""Tests des montants monétaires."""

from decimal import Decimal

import pytest

from facturation_bj.errors import InvalidAmount
from facturation_bj.money import Money, round_money, to_decimal


class TestToDecimal:
    """Tests de conversion en Decimal."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("12.345"), Decimal("12.345")),
            (42, Decimal("42")),
            ("118000", Decimal("118000")),
            (" 0.5 ", Decimal("0.5")),
        ],
    )
    def test_accepted_values(self, value, expected):
        assert to_decimal(value) == expected

    def test_float_refused(self):
        """Les flottants portent déjà une erreur de représentation."""
        with pytest.raises(InvalidAmount, match="flottante"):
            to_decimal(0.1)

    def test_bool_refused(self):
        with pytest.raises(InvalidAmount):
            to_decimal(True)

    @pytest.mark.parametrize("value", ["abc", "", "1,5"])
    def test_non_numeric_refused(self, value):
        with pytest.raises(InvalidAmount, match="non numérique"):
            to_decimal(value)

    @pytest.mark.parametrize("value", ["NaN", "Infinity", Decimal("-Infinity")])
    def test_non_finite_refused(self, value):
        with pytest.raises(InvalidAmount):
            to_decimal(value, allow_negative=True)

    def test_negative_refused_by_default(self):
        with pytest.raises(InvalidAmount, match="négative"):
            to_decimal("-1")

    def test_negative_allowed(self):
        assert to_decimal("-1", allow_negative=True) == Decimal("-1")

    def test_field_name_in_message(self):
        with pytest.raises(InvalidAmount, match="amount"):
            to_decimal("x", field="amount")

    def test_unsupported_type(self):
        with pytest.raises(InvalidAmount, match="type non supporté"):
            to_decimal([1])


class TestRoundMoney:
    """Tests de l'arrondi au centime, au demi supérieur."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("0.005", "0.01"),
            ("0.004", "0.00"),
            ("2.675", "2.68"),
            ("-0.005", "-0.01"),
            ("100", "100.00"),
        ],
    )
    def test_half_up(self, value, expected):
        assert round_money(Decimal(value)) == Decimal(expected)


class TestMoney:
    """Tests du type Money."""

    def test_addition_and_subtraction(self):
        total = Money.of("100.10") + Money.of("0.20")
        assert total == Money(Decimal("100.30"))
        assert (total - Money.of("0.30")).amount == Decimal("100.00")

    def test_no_implicit_rounding(self):
        third = Money.of("1").multiply(Decimal("1") / Decimal("3"))
        assert third.amount != Decimal("0.33")
        assert third.rounded().amount == Decimal("0.33")

    def test_percent(self):
        assert Money.of("100000").percent(18).rounded().amount == Decimal("18000.00")

    def test_total(self):
        assert Money.total([Money.of("1.10"), Money.of("2.20")]).amount == Decimal("3.30")
        assert Money.total([]).is_zero

    def test_ordering(self):
        assert Money.of("1") < Money.of("2")
        assert Money.of("3") >= Money.of("3")

    def test_negative_via_of_refused(self):
        with pytest.raises(InvalidAmount):
            Money.of("-5")

    def test_negation(self):
        assert (-Money.of("5")).is_negative

    def test_float_factor_refused(self):
        with pytest.raises(InvalidAmount):
            Money.of("10").multiply(1.5)

    def test_str_is_rounded(self):
        assert str(Money(Decimal("1.005"))) == "1.01"

    def test_frozen(self):
        money = Money.of("1")
        with pytest.raises(AttributeError):
            money.amount = Decimal("2")
