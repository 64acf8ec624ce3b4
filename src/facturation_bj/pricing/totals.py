"""Agrégation des lignes en totaux de document.

FR: Somme des montants de lignes déjà arrondis (aucun nouvel arrondi) et
    ventilation de la TVA par groupe de taxation e-MECeF et par taux.
EN: Sums already-rounded line amounts (no re-rounding) and breaks VAT
    down per e-MECeF tax group and rate.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import NamedTuple, Protocol

from pydantic import BaseModel, Field

from facturation_bj.money import Money, round_money


class PricedLine(Protocol):
    """Ligne portant ses montants calculés."""

    tva_group: str
    tva_rate: Decimal
    total_ht: Decimal
    total_tva: Decimal
    total_ttc: Decimal


class TaxSummary(BaseModel):
    """Récapitulatif TVA par groupe de taxation et taux.

    FR: Regroupe la base HT et la TVA d'un couple (groupe, taux).
    EN: Groups taxable base and VAT for a (group, rate) pair.
    """

    tva_group: str = Field(..., description="Groupe de taxation (A-F) / Tax group")
    tva_rate: Decimal = Field(..., ge=0, description="Taux de TVA en % / VAT rate in %")
    taxable_amount: Decimal = Field(..., description="Base imposable HT / Taxable amount")
    tax_amount: Decimal = Field(..., description="Montant de TVA / Tax amount")


class InvoiceTotals(NamedTuple):
    """Totaux d'un document."""

    total_ht: Decimal
    total_tva: Decimal
    total_ttc: Decimal
    tax_summaries: list[TaxSummary]


def aggregate_lines(lines: Iterable[PricedLine]) -> InvoiceTotals:
    """Calcule les totaux HT, TVA et TTC d'un ensemble de lignes.

    FR: ``total_ttc`` vaut ``total_ht + total_tva``. Un document sans ligne
        a des totaux nuls.
    EN: ``total_ttc`` equals ``total_ht + total_tva``. No lines gives zeros.
    """
    total_ht = total_tva = Money(Decimal("0.00"))
    buckets: dict[tuple[str, Decimal], tuple[Money, Money]] = {}

    for line in lines:
        ht, tva = Money(line.total_ht), Money(line.total_tva)
        total_ht += ht
        total_tva += tva
        key = (str(line.tva_group), round_money(line.tva_rate))
        base, tax = buckets.get(key, (Money(Decimal("0.00")), Money(Decimal("0.00"))))
        buckets[key] = (base + ht, tax + tva)

    summaries = [
        TaxSummary(
            tva_group=group,
            tva_rate=rate,
            taxable_amount=base.amount,
            tax_amount=tax.amount,
        )
        for (group, rate), (base, tax) in sorted(buckets.items())
    ]
    return InvoiceTotals(
        total_ht=total_ht.amount,
        total_tva=total_tva.amount,
        total_ttc=(total_ht + total_tva).amount,
        tax_summaries=summaries,
    )
