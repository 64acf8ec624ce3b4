"""Tests de l'agrégation des lignes."""

from decimal import Decimal

from facturation_bj.models.enums import TvaGroup
from facturation_bj.models.invoice import InvoiceLine
from facturation_bj.pricing.totals import aggregate_lines


def _line(position, quantity, price, rate="18", group=TvaGroup.B, discount="0"):
    return InvoiceLine(
        position=position,
        description=f"Article {position}",
        quantity=Decimal(quantity),
        unit_price_ht=Decimal(price),
        discount_percent=Decimal(discount),
        tva_rate=Decimal(rate),
        tva_group=group,
    )


class TestAggregateLines:
    """Totaux HT, TVA, TTC et ventilation par groupe."""

    def test_empty(self):
        totals = aggregate_lines([])
        assert totals.total_ht == Decimal("0.00")
        assert totals.total_tva == Decimal("0.00")
        assert totals.total_ttc == Decimal("0.00")
        assert totals.tax_summaries == []
        assert str(totals.total_ttc) == "0.00"

    def test_reconciliation(self):
        lines = [
            _line(0, "2", "50000"),
            _line(1, "3", "0.335"),
            _line(2, "1", "12000", rate="0", group=TvaGroup.A),
            _line(3, "7", "999.99", discount="12.5"),
        ]
        totals = aggregate_lines(lines)
        assert totals.total_ht == sum(line.total_ht for line in lines)
        assert totals.total_tva == sum(line.total_tva for line in lines)
        assert totals.total_ttc == totals.total_ht + totals.total_tva

    def test_no_rerounding(self):
        """Les totaux sont la somme exacte des montants de ligne arrondis."""
        lines = [_line(i, "1", "0.05") for i in range(3)]
        totals = aggregate_lines(lines)
        # 0.05 × 18 % = 0.009 → 0.01 par ligne
        assert totals.total_tva == Decimal("0.03")

    def test_tax_summaries_grouped_by_group_and_rate(self):
        lines = [
            _line(0, "1", "1000"),
            _line(1, "2", "500"),
            _line(2, "1", "3000", rate="0", group=TvaGroup.A),
        ]
        summaries = aggregate_lines(lines).tax_summaries
        assert [(s.tva_group, s.tva_rate) for s in summaries] == [
            ("A", Decimal("0.00")),
            ("B", Decimal("18.00")),
        ]
        group_b = summaries[1]
        assert group_b.taxable_amount == Decimal("2000.00")
        assert group_b.tax_amount == Decimal("360.00")

    def test_same_rate_different_groups_are_separate(self):
        lines = [
            _line(0, "1", "1000", group=TvaGroup.B),
            _line(1, "1", "1000", group=TvaGroup.D),
        ]
        assert len(aggregate_lines(lines).tax_summaries) == 2
