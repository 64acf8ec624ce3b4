"""Modèles pour les règlements de factures.

FR: Un règlement est toujours strictement positif ; le cumul des
    règlements d'une facture ne dépasse jamais son total TTC.
EN: A payment is always strictly positive; the sum of an invoice's
    payments never exceeds its total.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field

from facturation_bj.models.enums import PaymentMethod


class PaymentInput(BaseModel):
    """Règlement saisi par l'appelant.

    FR: Le montant est contrôlé par le service (InvalidAmount).
    EN: The amount is checked by the service (InvalidAmount).
    """

    amount: Decimal = Field(..., description="Montant réglé / Amount paid")
    payment_date: date | None = Field(
        default=None,
        description="Date du règlement (jour courant par défaut) / Payment date",
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CASH,
        description="Mode de règlement / Payment method",
    )
    reference: str | None = Field(
        default=None,
        description="Référence (chèque, transaction) / Reference",
    )
    notes: str | None = Field(default=None, description="Notes / Notes")


class Payment(BaseModel):
    """Règlement enregistré."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Identifiant / ID")
    invoice_id: str = Field(..., description="Facture réglée / Paid invoice")
    amount: Decimal = Field(..., gt=0, description="Montant / Amount")
    payment_date: date = Field(..., description="Date du règlement / Payment date")
    payment_method: PaymentMethod = Field(..., description="Mode de règlement / Method")
    reference: str | None = Field(default=None, description="Référence / Reference")
    notes: str | None = Field(default=None, description="Notes / Notes")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Enregistrement / Created at",
    )
