"""Modèles principaux pour les factures, devis et avoirs.

FR: Modèles Pydantic pour les lignes et les documents commerciaux. Les
    montants dérivés (HT, TVA, TTC, solde) sont des champs calculés : ils
    ne peuvent pas être fournis par l'appelant et proviennent toujours du
    calcul de ligne.
EN: Pydantic models for lines and commercial documents. Derived amounts
    are computed fields: callers cannot set them.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, model_validator

from facturation_bj.models.enums import (
    DocumentType,
    InvoiceStatus,
    MecefStatus,
    MecefType,
    TvaGroup,
)
from facturation_bj.pricing.lines import LineAmounts, compute_line
from facturation_bj.pricing.totals import TaxSummary, aggregate_lines


def _now() -> datetime:
    return datetime.now(UTC)


class InvoiceLineInput(BaseModel):
    """Ligne saisie par l'appelant, avant calcul.

    FR: Les bornes (quantité > 0, pourcentages entre 0 et 100) sont
        contrôlées par le calcul de ligne, qui lève InvalidLineInput.
    EN: Bounds are checked by the line calculator (InvalidLineInput).
    """

    description: str = Field(..., min_length=1, description="Désignation / Item description")
    quantity: Decimal = Field(..., description="Quantité / Quantity")
    unit_price_ht: Decimal = Field(..., description="Prix unitaire HT / Unit price excl. tax")
    discount_percent: Decimal = Field(
        default=Decimal("0"),
        description="Remise en % / Discount in %",
    )
    tva_rate: Decimal = Field(
        default=Decimal("18"),
        description="Taux de TVA en % / VAT rate in %",
    )
    tva_group: TvaGroup = Field(
        default=TvaGroup.B,
        description="Groupe de taxation e-MECeF / e-MECeF tax group",
    )
    account_id: str | None = Field(
        default=None,
        description="Compte comptable (non interprété) / Accounting account reference",
    )


class InvoiceLine(InvoiceLineInput):
    """Ligne de facture calculée.

    FR: Appartient à un seul document. Les totaux sont recalculés à partir
        des champs saisis ; la validation échoue si ceux-ci sont hors bornes.
    EN: Owned by one document. Totals are recomputed from the input fields.
    """

    position: int = Field(default=0, ge=0, description="Position (base 0) / Position")

    @model_validator(mode="after")
    def _check_amounts(self) -> Self:
        self.amounts()
        return self

    def amounts(self) -> LineAmounts:
        """Montants de la ligne / Line amounts."""
        return compute_line(
            self.quantity,
            self.unit_price_ht,
            self.discount_percent,
            self.tva_rate,
            position=self.position,
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_ht(self) -> Decimal:
        """Total HT après remise / Total excl. tax after discount."""
        return self.amounts().total_ht

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tva(self) -> Decimal:
        """Montant de TVA / VAT amount."""
        return self.amounts().total_tva

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_ttc(self) -> Decimal:
        """Total TTC / Total incl. tax."""
        return self.amounts().total_ttc

    @classmethod
    def from_input(cls, line: InvoiceLineInput, position: int) -> "InvoiceLine":
        """Construit une ligne calculée à la position donnée."""
        data = line.model_dump(include=set(InvoiceLineInput.model_fields))
        return cls(**data, position=position)


def build_lines(lines: list[InvoiceLineInput]) -> list[InvoiceLine]:
    """Calcule les lignes et les numérote de 0 à n-1."""
    return [InvoiceLine.from_input(line, index) for index, line in enumerate(lines)]


class Invoice(BaseModel):
    """Document commercial : devis, bon de commande, facture ou avoir.

    FR: Racine d'agrégat. Le numéro et la série restent vides tant que le
        document est en brouillon. Une fois certifié (mecef_status
        CERTIFIED), les champs MECeF et les totaux ne changent plus.
    EN: Aggregate root. Number and series stay empty while DRAFT. Once
        certified, MECeF fields and totals never change.
    """

    # --- Identification ---
    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Identifiant / ID",
    )
    company_id: str = Field(..., description="Société émettrice / Issuing company")
    client_id: str = Field(..., description="Client / Client")
    type: DocumentType = Field(
        default=DocumentType.INVOICE,
        description="Type de document / Document type",
    )
    series: str | None = Field(
        default=None,
        description="Série de numérotation (attribuée à l'émission) / Numbering series",
    )
    number: str | None = Field(
        default=None,
        description="Numéro légal (attribué à l'émission) / Legal number",
    )
    issue_date: date = Field(..., description="Date d'émission / Issue date")
    due_date: date | None = Field(
        default=None,
        description="Échéance ou fin de validité / Due date or validity end",
    )
    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Statut enregistré / Stored status",
    )

    # --- Lignes et paiements ---
    lines: list[InvoiceLine] = Field(
        default_factory=list,
        description="Lignes / Lines",
    )
    amount_paid: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Cumul des paiements / Sum of payments",
    )

    # --- MECeF ---
    mecef_nim: str | None = Field(default=None, description="NIM du dispositif / Device NIM")
    mecef_counters: str | None = Field(default=None, description="Compteurs / Counters")
    mecef_dtc: str | None = Field(
        default=None,
        description="Date-heure de certification / Certification timestamp",
    )
    mecef_qr_code: str | None = Field(default=None, description="Contenu du QR code / QR payload")
    mecef_signature: str | None = Field(default=None, description="Signature / Signature")
    mecef_type: MecefType | None = Field(
        default=None,
        description="Type de facture normalisée / Normalized invoice type",
    )
    mecef_status: MecefStatus = Field(
        default=MecefStatus.PENDING,
        description="Statut de certification / Certification status",
    )

    # --- Références et mentions ---
    original_invoice_id: str | None = Field(
        default=None,
        description="Facture d'origine (avoirs) / Original invoice (credit notes)",
    )
    notes: str | None = Field(default=None, description="Notes / Notes")
    legal_mentions: str | None = Field(
        default=None,
        description="Mentions légales / Legal mentions",
    )

    # --- Traçabilité ---
    created_by_id: str | None = Field(default=None, description="Auteur / Author")
    sent_at: datetime | None = Field(default=None, description="Date d'émission effective / Sent at")
    created_at: datetime = Field(default_factory=_now, description="Création / Created at")
    updated_at: datetime = Field(default_factory=_now, description="Modification / Updated at")

    @model_validator(mode="after")
    def _check_dates(self) -> Self:
        if self.due_date is not None and self.due_date < self.issue_date:
            msg = "L'échéance ne peut pas précéder la date d'émission"
            raise ValueError(msg)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_ht(self) -> Decimal:
        """Total HT / Total excl. tax."""
        return aggregate_lines(self.lines).total_ht

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tva(self) -> Decimal:
        """Total TVA / Total VAT."""
        return aggregate_lines(self.lines).total_tva

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_ttc(self) -> Decimal:
        """Total TTC / Total incl. tax."""
        return aggregate_lines(self.lines).total_ttc

    @computed_field  # type: ignore[prop-decorator]
    @property
    def amount_due(self) -> Decimal:
        """Reste à payer / Amount due."""
        return self.total_ttc - self.amount_paid

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tax_summaries(self) -> list[TaxSummary]:
        """Ventilation de la TVA par groupe et taux / VAT breakdown."""
        return aggregate_lines(self.lines).tax_summaries

    @property
    def requires_certification(self) -> bool:
        """Vrai pour les factures et avoirs / True for invoices and credit notes."""
        return self.type in (DocumentType.INVOICE, DocumentType.CREDIT_NOTE)

    @property
    def is_certified(self) -> bool:
        return self.mecef_status == MecefStatus.CERTIFIED


class InvoiceDraft(BaseModel):
    """Données de création d'un brouillon.

    FR: La date d'émission par défaut est la date du jour de l'horloge du
        service. Les lignes sont obligatoires (au moins une).
    EN: Issue date defaults to the service clock's today. At least one
        line is required.
    """

    client_id: str = Field(..., description="Client / Client")
    type: DocumentType = Field(
        default=DocumentType.INVOICE,
        description="Type de document / Document type",
    )
    issue_date: date | None = Field(default=None, description="Date d'émission / Issue date")
    due_date: date | None = Field(default=None, description="Échéance / Due date")
    lines: list[InvoiceLineInput] = Field(
        default_factory=list,
        description="Lignes / Lines",
    )
    mecef_type: MecefType | None = Field(
        default=None,
        description="Type MECeF (déduit du type de document si absent) / MECeF type",
    )
    original_invoice_id: str | None = Field(
        default=None,
        description="Facture d'origine (obligatoire pour un avoir) / Original invoice",
    )
    notes: str | None = Field(default=None, description="Notes / Notes")
    legal_mentions: str | None = Field(default=None, description="Mentions légales / Legal mentions")

    @model_validator(mode="after")
    def _check_dates(self) -> Self:
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            msg = "L'échéance ne peut pas précéder la date d'émission"
            raise ValueError(msg)
        return self


class InvoiceUpdate(BaseModel):
    """Modification partielle d'un brouillon.

    FR: Seuls les champs fournis sont appliqués ; ``lines`` remplace
        intégralement les lignes existantes.
    EN: Only provided fields are applied; ``lines`` replaces all lines.
    """

    client_id: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    notes: str | None = None
    legal_mentions: str | None = None
    mecef_type: MecefType | None = None
    original_invoice_id: str | None = None
    lines: list[InvoiceLineInput] | None = None
