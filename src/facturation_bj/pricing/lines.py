"""Calcul des montants d'une ligne de facture.

FR: Chaîne HT → remise → TVA → TTC. Chaque étape est arrondie à l'échelle
    monétaire (0.01, au demi supérieur) avant d'alimenter la suivante, de
    sorte que TTC = HT + TVA au centime près.
EN: HT → discount → VAT → TTC chain. Each step is rounded to the money
    scale before feeding the next one, so TTC = HT + VAT exactly.
"""

from decimal import Decimal
from typing import NamedTuple

from facturation_bj.errors import InvalidAmount, InvalidLineInput
from facturation_bj.money import Money, to_decimal

HUNDRED = Decimal("100")


class LineAmounts(NamedTuple):
    """Montants calculés d'une ligne."""

    base_ht: Decimal
    discount_amount: Decimal
    total_ht: Decimal
    total_tva: Decimal
    total_ttc: Decimal


def _decimal_field(value: object, field: str, position: int | None) -> Decimal:
    try:
        return to_decimal(value, field=field, allow_negative=True)
    except InvalidAmount as exc:
        raise InvalidLineInput(str(exc), field=field, position=position) from exc


def _check_percent(value: Decimal, field: str, position: int | None) -> None:
    if value < 0 or value > HUNDRED:
        msg = f"{field} doit être compris entre 0 et 100 (reçu : {value})"
        raise InvalidLineInput(msg, field=field, position=position)


def compute_line(
    quantity: object,
    unit_price_ht: object,
    discount_percent: object = Decimal("0"),
    tva_rate: object = Decimal("18"),
    *,
    position: int | None = None,
) -> LineAmounts:
    """Calcule HT, remise, TVA et TTC d'une ligne.

    FR: ``quantity`` doit être strictement positive, ``unit_price_ht``
        positif ou nul, les pourcentages compris entre 0 et 100.
    EN: ``quantity`` must be > 0, ``unit_price_ht`` >= 0, percentages
        within [0, 100].

    Args:
        quantity: Quantité facturée.
        unit_price_ht: Prix unitaire hors taxes.
        discount_percent: Remise en pourcentage.
        tva_rate: Taux de TVA en pourcentage.
        position: Position de la ligne, reportée dans l'erreur.

    Returns:
        Les montants arrondis de la ligne.

    Raises:
        InvalidLineInput: Valeur non décimale ou hors bornes.
    """
    qty = _decimal_field(quantity, "quantity", position)
    price = _decimal_field(unit_price_ht, "unit_price_ht", position)
    discount = _decimal_field(discount_percent, "discount_percent", position)
    rate = _decimal_field(tva_rate, "tva_rate", position)

    if qty <= 0:
        msg = f"La quantité doit être strictement positive (reçu : {qty})"
        raise InvalidLineInput(msg, field="quantity", position=position)
    if price < 0:
        msg = f"Le prix unitaire HT ne peut pas être négatif (reçu : {price})"
        raise InvalidLineInput(msg, field="unit_price_ht", position=position)
    _check_percent(discount, "discount_percent", position)
    _check_percent(rate, "tva_rate", position)

    base_ht = Money(price).multiply(qty).rounded()
    discount_amount = base_ht.percent(discount).rounded()
    total_ht = base_ht - discount_amount
    total_tva = total_ht.percent(rate).rounded()
    return LineAmounts(
        base_ht=base_ht.amount,
        discount_amount=discount_amount.amount,
        total_ht=total_ht.amount,
        total_tva=total_tva.amount,
        total_ttc=(total_ht + total_tva).amount,
    )
