"""Modèles Django pour la facturation certifiée MECeF.

FR: Modèles Django mappés sur les modèles Pydantic de la lib. Les totaux
    sont dénormalisés sur la facture et les lignes pour les contraintes de
    base de données et la recherche ; ils sont toujours recalculés par la
    lib avant écriture. L'unicité du numéro légal est garantie par deux
    contraintes : (société, série, numéro) et (société, série, année,
    ordinal).
EN: Django models mapped to the library's Pydantic models. Totals are
    denormalized for database constraints and search; they are always
    recomputed by the library before writing.
"""

from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone

from facturation_bj.models.audit import AuditEntry as PydanticAuditEntry
from facturation_bj.models.enums import (
    DocumentType,
    InvoiceStatus,
    MecefStatus,
    MecefType,
    PaymentMethod,
    TvaGroup,
)
from facturation_bj.models.invoice import Invoice as PydanticInvoice
from facturation_bj.models.invoice import InvoiceLine as PydanticInvoiceLine
from facturation_bj.models.party import Client as PydanticClient
from facturation_bj.models.party import Company as PydanticCompany
from facturation_bj.models.payment import Payment as PydanticPayment
from facturation_bj.numbering.allocator import split_number


class DocumentTypeChoices(models.TextChoices):
    """Types de documents commerciaux."""

    QUOTE = "QUOTE", "Devis"
    ORDER = "ORDER", "Bon de commande"
    INVOICE = "INVOICE", "Facture"
    CREDIT_NOTE = "CREDIT_NOTE", "Avoir"


class InvoiceStatusChoices(models.TextChoices):
    """Statuts enregistrés (OVERDUE et EXPIRED sont calculés)."""

    DRAFT = "DRAFT", "Brouillon"
    SENT = "SENT", "Émise"
    PARTIALLY_PAID = "PARTIALLY_PAID", "Partiellement payée"
    PAID = "PAID", "Payée"
    CANCELLED = "CANCELLED", "Annulée"
    ACCEPTED = "ACCEPTED", "Accepté"
    REJECTED = "REJECTED", "Refusé"


class MecefTypeChoices(models.TextChoices):
    """Types de factures normalisées e-MECeF."""

    FV = "FV", "Facture de vente"
    FA = "FA", "Facture d'avoir"
    EV = "EV", "Facture de vente à l'exportation"
    EA = "EA", "Facture d'avoir à l'exportation"


class PaymentMethodChoices(models.TextChoices):
    """Modes de règlement."""

    CASH = "CASH", "Espèces"
    BANK_TRANSFER = "BANK_TRANSFER", "Virement"
    CHECK = "CHECK", "Chèque"
    MOBILE_MONEY = "MOBILE_MONEY", "Mobile Money"
    CARD = "CARD", "Carte bancaire"
    OTHER = "OTHER", "Autre"


class Company(models.Model):
    """Société émettrice."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField("raison sociale", max_length=200)
    ifu = models.CharField("IFU", max_length=13, blank=True, default="")
    invoice_prefix = models.CharField("préfixe factures", max_length=10, default="FAC")
    quote_prefix = models.CharField("préfixe devis", max_length=10, default="DEV")
    order_prefix = models.CharField("préfixe bons de commande", max_length=10, default="BC")

    class Meta:
        verbose_name = "société"
        verbose_name_plural = "sociétés"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(ifu="") | models.Q(ifu__regex=r"^\d{13}$"),
                name="valid_company_ifu",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def to_pydantic(self) -> PydanticCompany:
        """Convertit le modèle Django en modèle Pydantic."""
        return PydanticCompany(
            id=str(self.pk),
            name=self.name,
            ifu=self.ifu or None,
            invoice_prefix=self.invoice_prefix,
            quote_prefix=self.quote_prefix,
            order_prefix=self.order_prefix,
        )


class Client(models.Model):
    """Client d'une société."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="clients",
        verbose_name="société",
    )
    name = models.CharField("nom", max_length=200)
    ifu = models.CharField("IFU", max_length=13, blank=True, default="")
    email = models.EmailField("email", blank=True, default="")

    class Meta:
        verbose_name = "client"
        verbose_name_plural = "clients"

    def __str__(self) -> str:
        return self.name

    def to_pydantic(self) -> PydanticClient:
        """Convertit le modèle Django en modèle Pydantic."""
        return PydanticClient(
            id=str(self.pk),
            company_id=str(self.company_id),
            name=self.name,
            ifu=self.ifu or None,
            email=self.email or None,
        )


class Invoice(models.Model):
    """Document commercial : devis, bon de commande, facture ou avoir.

    FR: Convertible vers/depuis le modèle Pydantic de la lib. Les champs
        ``fiscal_year`` et ``ordinal`` sont déduits du numéro légal.
    EN: Convertible to/from the library's Pydantic model. ``fiscal_year``
        and ``ordinal`` are derived from the legal number.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="invoices",
        verbose_name="société",
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        related_name="invoices",
        verbose_name="client",
    )
    type = models.CharField(
        "type de document",
        max_length=20,
        choices=DocumentTypeChoices.choices,
        default=DocumentTypeChoices.INVOICE,
    )

    # --- Numérotation ---
    series = models.CharField("série", max_length=10, blank=True, null=True)
    number = models.CharField("numéro", max_length=50, blank=True, null=True)
    fiscal_year = models.PositiveIntegerField("année de numérotation", null=True, blank=True)
    ordinal = models.PositiveIntegerField("ordinal", null=True, blank=True)

    # --- Dates et statut ---
    issue_date = models.DateField("date d'émission")
    due_date = models.DateField("date d'échéance", blank=True, null=True)
    status = models.CharField(
        "statut",
        max_length=20,
        choices=InvoiceStatusChoices.choices,
        default=InvoiceStatusChoices.DRAFT,
    )

    # --- Montants ---
    total_ht = models.DecimalField("total HT", max_digits=15, decimal_places=2, default=0)
    total_tva = models.DecimalField("total TVA", max_digits=15, decimal_places=2, default=0)
    total_ttc = models.DecimalField("total TTC", max_digits=15, decimal_places=2, default=0)
    amount_paid = models.DecimalField("montant réglé", max_digits=15, decimal_places=2, default=0)

    # --- MECeF ---
    mecef_nim = models.CharField("NIM", max_length=50, blank=True, default="")
    mecef_counters = models.CharField("compteurs", max_length=50, blank=True, default="")
    mecef_dtc = models.CharField("date-heure de certification", max_length=50, blank=True, default="")
    mecef_qr_code = models.TextField("QR code", blank=True, default="")
    mecef_signature = models.CharField("signature", max_length=128, blank=True, default="")
    mecef_type = models.CharField(
        "type MECeF",
        max_length=2,
        choices=MecefTypeChoices.choices,
        blank=True,
        null=True,
    )
    mecef_status = models.CharField(
        "statut MECeF",
        max_length=10,
        choices=[(s.value, s.value) for s in MecefStatus],
        default=MecefStatus.PENDING.value,
    )

    # --- Références et mentions ---
    original_invoice = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="credit_notes",
        verbose_name="facture d'origine",
    )
    notes = models.TextField("notes", blank=True, default="")
    legal_mentions = models.TextField("mentions légales", blank=True, default="")

    # --- Traçabilité ---
    created_by_id = models.CharField("auteur", max_length=64, blank=True, default="")
    sent_at = models.DateTimeField("date d'envoi", null=True, blank=True)
    created_at = models.DateTimeField("date de création", default=timezone.now)
    updated_at = models.DateTimeField("date de modification", default=timezone.now)

    class Meta:
        verbose_name = "facture"
        verbose_name_plural = "factures"
        ordering = ["-issue_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "series", "number"],
                name="unique_invoice_number",
            ),
            models.UniqueConstraint(
                fields=["company", "series", "fiscal_year", "ordinal"],
                name="unique_invoice_ordinal",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(total_ht__gte=0)
                    & models.Q(total_tva__gte=0)
                    & models.Q(total_ttc__gte=0)
                ),
                name="non_negative_totals",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_paid__gte=0),
                name="non_negative_amount_paid",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_paid__lte=models.F("total_ttc")),
                name="amount_paid_within_total",
            ),
        ]
        indexes = [
            models.Index(
                fields=["company", "status", "issue_date"],
                name="idx_company_status_date",
            ),
            models.Index(
                fields=["company", "series", "fiscal_year"],
                name="idx_company_series_year",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()} {self.number or '(brouillon)'}"

    def to_pydantic(self) -> PydanticInvoice:
        """Convertit le modèle Django en modèle Pydantic.

        FR: Construit un objet Invoice Pydantic à partir des champs Django,
            incluant les lignes associées. Les totaux sont recalculés.
        EN: Builds a Pydantic Invoice from Django fields, including lines.
        """
        return PydanticInvoice(
            id=str(self.pk),
            company_id=str(self.company_id),
            client_id=str(self.client_id),
            type=DocumentType(self.type),
            series=self.series,
            number=self.number,
            issue_date=self.issue_date,
            due_date=self.due_date,
            status=InvoiceStatus(self.status),
            lines=[line.to_pydantic() for line in self.lines.all()],
            amount_paid=self.amount_paid,
            mecef_nim=self.mecef_nim or None,
            mecef_counters=self.mecef_counters or None,
            mecef_dtc=self.mecef_dtc or None,
            mecef_qr_code=self.mecef_qr_code or None,
            mecef_signature=self.mecef_signature or None,
            mecef_type=MecefType(self.mecef_type) if self.mecef_type else None,
            mecef_status=MecefStatus(self.mecef_status),
            original_invoice_id=(
                str(self.original_invoice_id) if self.original_invoice_id else None
            ),
            notes=self.notes or None,
            legal_mentions=self.legal_mentions or None,
            created_by_id=self.created_by_id or None,
            sent_at=self.sent_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, invoice: PydanticInvoice) -> Invoice:
        """Crée une instance Django (non sauvée) depuis un modèle Pydantic.

        FR: Ne sauvegarde pas en base et ne crée pas les lignes.
        EN: Does not save and does not create lines.
        """
        parts = split_number(invoice.number) if invoice.number else None
        return cls(
            id=invoice.id,
            company_id=invoice.company_id,
            client_id=invoice.client_id,
            type=str(invoice.type),
            series=invoice.series,
            number=invoice.number,
            fiscal_year=parts[1] if parts else None,
            ordinal=parts[2] if parts else None,
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            status=str(invoice.status),
            total_ht=invoice.total_ht,
            total_tva=invoice.total_tva,
            total_ttc=invoice.total_ttc,
            amount_paid=invoice.amount_paid,
            mecef_nim=invoice.mecef_nim or "",
            mecef_counters=invoice.mecef_counters or "",
            mecef_dtc=invoice.mecef_dtc or "",
            mecef_qr_code=invoice.mecef_qr_code or "",
            mecef_signature=invoice.mecef_signature or "",
            mecef_type=str(invoice.mecef_type) if invoice.mecef_type else None,
            mecef_status=str(invoice.mecef_status),
            original_invoice_id=invoice.original_invoice_id,
            notes=invoice.notes or "",
            legal_mentions=invoice.legal_mentions or "",
            created_by_id=invoice.created_by_id or "",
            sent_at=invoice.sent_at,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
        )


class InvoiceLine(models.Model):
    """Ligne de document.

    FR: Les totaux sont ceux calculés par la lib au moment de l'écriture.
    EN: Totals are those computed by the library when written.
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="lines",
        verbose_name="facture",
    )
    position = models.PositiveIntegerField("position")
    description = models.CharField("désignation", max_length=500)
    quantity = models.DecimalField("quantité", max_digits=15, decimal_places=4)
    unit_price_ht = models.DecimalField("prix unitaire HT", max_digits=15, decimal_places=4)
    discount_percent = models.DecimalField(
        "remise (%)", max_digits=5, decimal_places=2, default=0
    )
    tva_rate = models.DecimalField(
        "taux de TVA (%)", max_digits=5, decimal_places=2, default=18
    )
    tva_group = models.CharField(
        "groupe de taxation",
        max_length=1,
        choices=[(g.value, g.value) for g in TvaGroup],
        default=TvaGroup.B.value,
    )
    account_id = models.CharField("compte comptable", max_length=64, blank=True, default="")
    total_ht = models.DecimalField("total HT", max_digits=15, decimal_places=2)
    total_tva = models.DecimalField("total TVA", max_digits=15, decimal_places=2)
    total_ttc = models.DecimalField("total TTC", max_digits=15, decimal_places=2)

    class Meta:
        verbose_name = "ligne de facture"
        verbose_name_plural = "lignes de facture"
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["invoice", "position"],
                name="unique_line_position",
            ),
        ]

    def __str__(self) -> str:
        return f"Ligne {self.position} : {self.description}"

    def to_pydantic(self) -> PydanticInvoiceLine:
        """Convertit la ligne Django en ligne Pydantic."""
        return PydanticInvoiceLine(
            position=self.position,
            description=self.description,
            quantity=self.quantity,
            unit_price_ht=self.unit_price_ht,
            discount_percent=self.discount_percent,
            tva_rate=self.tva_rate,
            tva_group=TvaGroup(self.tva_group),
            account_id=self.account_id or None,
        )

    @classmethod
    def from_pydantic(cls, line: PydanticInvoiceLine, invoice_id: str) -> InvoiceLine:
        """Crée une instance Django (non sauvée) depuis une ligne Pydantic."""
        return cls(
            invoice_id=invoice_id,
            position=line.position,
            description=line.description,
            quantity=line.quantity,
            unit_price_ht=line.unit_price_ht,
            discount_percent=line.discount_percent,
            tva_rate=line.tva_rate,
            tva_group=str(line.tva_group),
            account_id=line.account_id or "",
            total_ht=line.total_ht,
            total_tva=line.total_tva,
            total_ttc=line.total_ttc,
        )


class Payment(models.Model):
    """Règlement d'une facture."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="payments",
        verbose_name="facture",
    )
    amount = models.DecimalField("montant", max_digits=15, decimal_places=2)
    payment_date = models.DateField("date du règlement")
    payment_method = models.CharField(
        "mode de règlement",
        max_length=20,
        choices=PaymentMethodChoices.choices,
    )
    reference = models.CharField("référence", max_length=100, blank=True, default="")
    notes = models.TextField("notes", blank=True, default="")
    created_at = models.DateTimeField("date d'enregistrement", default=timezone.now)

    class Meta:
        verbose_name = "règlement"
        verbose_name_plural = "règlements"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="positive_payment_amount",
            ),
        ]

    def __str__(self) -> str:
        return f"Règlement {self.amount} ({self.get_payment_method_display()})"

    def to_pydantic(self) -> PydanticPayment:
        """Convertit le modèle Django en modèle Pydantic."""
        return PydanticPayment(
            id=str(self.pk),
            invoice_id=str(self.invoice_id),
            amount=self.amount,
            payment_date=self.payment_date,
            payment_method=PaymentMethod(self.payment_method),
            reference=self.reference or None,
            notes=self.notes or None,
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, payment: PydanticPayment) -> Payment:
        """Crée une instance Django (non sauvée) depuis un modèle Pydantic."""
        return cls(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            payment_date=payment.payment_date,
            payment_method=str(payment.payment_method),
            reference=payment.reference or "",
            notes=payment.notes or "",
            created_at=payment.created_at,
        )


class AuditLog(models.Model):
    """Journal d'audit des mutations.

    FR: La clé primaire auto-incrémentée conserve l'ordre d'écriture.
    EN: The auto-increment primary key keeps the write order.
    """

    entry_id = models.UUIDField("identifiant", unique=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="audit_logs",
        verbose_name="société",
    )
    action = models.CharField("action", max_length=20)
    entity_type = models.CharField("type d'entité", max_length=20)
    entity_id = models.CharField("identifiant de l'entité", max_length=64, db_index=True)
    user_id = models.CharField("utilisateur", max_length=64, blank=True, default="")
    old_values = models.JSONField("avant", null=True, blank=True)
    new_values = models.JSONField("après", null=True, blank=True)
    created_at = models.DateTimeField("horodatage", default=timezone.now)

    class Meta:
        verbose_name = "entrée d'audit"
        verbose_name_plural = "journal d'audit"
        ordering = ["pk"]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type} {self.entity_id}"

    def to_pydantic(self) -> PydanticAuditEntry:
        """Convertit le modèle Django en modèle Pydantic."""
        return PydanticAuditEntry(
            id=str(self.entry_id),
            company_id=str(self.company_id),
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            user_id=self.user_id or None,
            old_values=self.old_values,
            new_values=self.new_values,
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, entry: PydanticAuditEntry) -> AuditLog:
        """Crée une instance Django (non sauvée) depuis un modèle Pydantic."""
        return cls(
            entry_id=entry.id,
            company_id=entry.company_id,
            action=str(entry.action),
            entity_type=str(entry.entity_type),
            entity_id=entry.entity_id,
            user_id=entry.user_id or "",
            old_values=entry.old_values,
            new_values=entry.new_values,
            created_at=entry.created_at,
        )
