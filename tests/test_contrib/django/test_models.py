"""Tests des modèles Django de la facturation certifiée."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from facturation_bj.contrib.django.models import Company, Invoice, InvoiceLine, Payment
from facturation_bj.models.enums import (
    DocumentType,
    InvoiceStatus,
    MecefStatus,
    MecefType,
    TvaGroup,
)
from facturation_bj.models.invoice import Invoice as PydanticInvoice
from facturation_bj.models.invoice import InvoiceLine as PydanticInvoiceLine


@pytest.fixture
def sample_pydantic_invoice(client_row) -> PydanticInvoice:
    """Fixture : facture Pydantic émise et certifiée."""
    return PydanticInvoice(
        company_id=str(client_row.company_id),
        client_id=str(client_row.pk),
        series="FAC",
        number="FAC-2026-007",
        issue_date=date(2026, 3, 16),
        due_date=date(2026, 4, 15),
        status=InvoiceStatus.SENT,
        lines=[
            PydanticInvoiceLine(
                position=0,
                description="Prestation de conseil",
                quantity=Decimal("2"),
                unit_price_ht=Decimal("50000"),
            ),
            PydanticInvoiceLine(
                position=1,
                description="Frais de dossier",
                quantity=Decimal("1"),
                unit_price_ht=Decimal("5000"),
                tva_rate=Decimal("0"),
                tva_group=TvaGroup.A,
            ),
        ],
        mecef_nim="TEST-MECeF-DEVICE-001",
        mecef_counters="7/7 FV",
        mecef_dtc="2026-03-16T09:30:00",
        mecef_qr_code="F;TEST-MECeF-DEVICE-001;...",
        mecef_signature="AB" * 32,
        mecef_type=MecefType.FV,
        mecef_status=MecefStatus.CERTIFIED,
        sent_at=datetime(2026, 3, 16, 9, 30, tzinfo=UTC),
    )


@pytest.fixture
def sample_invoice(sample_pydantic_invoice) -> Invoice:
    """Fixture : facture enregistrée avec ses lignes."""
    row = Invoice.from_pydantic(sample_pydantic_invoice)
    row.save(force_insert=True)
    InvoiceLine.objects.bulk_create(
        [
            InvoiceLine.from_pydantic(line, sample_pydantic_invoice.id)
            for line in sample_pydantic_invoice.lines
        ]
    )
    return row


class TestCompanyModel:
    """Tests des modèles Company et Client."""

    def test_to_pydantic(self, company_row):
        """Vérifie la conversion Django → Pydantic."""
        company = company_row.to_pydantic()
        assert company.id == str(company_row.pk)
        assert company.ifu == "3201900123456"
        assert company.invoice_prefix == "FAC"

    def test_empty_ifu_is_none(self, db):
        """Vérifie qu'un IFU vide devient None."""
        company = Company.objects.create(name="Sans IFU")
        assert company.to_pydantic().ifu is None

    def test_invalid_ifu_rejected(self, db):
        """Vérifie la contrainte de format de l'IFU."""
        with pytest.raises(IntegrityError), transaction.atomic():
            Company.objects.create(name="IFU invalide", ifu="12345")

    def test_client_to_pydantic(self, client_row):
        """Vérifie la conversion du client."""
        customer = client_row.to_pydantic()
        assert customer.company_id == str(client_row.company_id)
        assert customer.ifu == "0202212345678"
        assert customer.email == "compta@atlantique.bj"


class TestInvoiceModel:
    """Tests du modèle Invoice."""

    def test_from_pydantic(self, sample_pydantic_invoice):
        """Vérifie la conversion Pydantic → Django (non sauvée)."""
        row = Invoice.from_pydantic(sample_pydantic_invoice)
        assert row._state.adding
        assert row.number == "FAC-2026-007"
        assert row.fiscal_year == 2026
        assert row.ordinal == 7
        assert row.total_ht == Decimal("105000.00")
        assert row.total_tva == Decimal("18000.00")
        assert row.total_ttc == Decimal("123000.00")

    def test_from_pydantic_draft(self, sample_pydantic_invoice):
        """Vérifie qu'un brouillon n'a ni année ni ordinal."""
        draft = sample_pydantic_invoice.model_copy(
            update={"series": None, "number": None, "status": InvoiceStatus.DRAFT}
        )
        row = Invoice.from_pydantic(draft)
        assert row.fiscal_year is None
        assert row.ordinal is None

    def test_str(self, sample_invoice, sample_pydantic_invoice):
        """Vérifie la représentation textuelle."""
        assert str(sample_invoice) == "Facture FAC-2026-007"
        draft = Invoice.from_pydantic(sample_pydantic_invoice.model_copy(update={"number": None}))
        assert str(draft) == "Facture (brouillon)"

    def test_to_pydantic(self, sample_invoice, sample_pydantic_invoice):
        """Vérifie la conversion Django → Pydantic, lignes comprises."""
        restored = Invoice.objects.get(pk=sample_invoice.pk).to_pydantic()

        assert isinstance(restored, PydanticInvoice)
        assert restored.id == sample_pydantic_invoice.id
        assert restored.type == DocumentType.INVOICE
        assert restored.status == InvoiceStatus.SENT
        assert restored.mecef_status == MecefStatus.CERTIFIED
        assert restored.mecef_counters == "7/7 FV"
        assert restored.notes is None
        assert restored.original_invoice_id is None

        # Lignes, dans l'ordre des positions
        assert [line.description for line in restored.lines] == [
            "Prestation de conseil",
            "Frais de dossier",
        ]
        assert restored.lines[1].tva_group == TvaGroup.A
        assert restored.total_ttc == Decimal("123000.00")

    def test_unique_number(self, sample_invoice, sample_pydantic_invoice):
        """Vérifie l'unicité (société, série, numéro)."""
        duplicate = sample_pydantic_invoice.model_copy(
            update={"id": "c1d8b9a0-0000-4000-8000-000000000001"}
        )
        with pytest.raises(IntegrityError), transaction.atomic():
            Invoice.from_pydantic(duplicate).save(force_insert=True)

    def test_amount_paid_within_total(self, sample_invoice):
        """Vérifie que le cumul réglé ne dépasse pas le TTC."""
        sample_invoice.amount_paid = Decimal("123000.01")
        with pytest.raises(IntegrityError), transaction.atomic():
            sample_invoice.save()

    def test_unique_line_position(self, sample_invoice):
        """Vérifie l'unicité de la position d'une ligne."""
        line = sample_invoice.lines.first()
        line.pk = None
        with pytest.raises(IntegrityError), transaction.atomic():
            line.save()


class TestPaymentModel:
    """Tests du modèle Payment."""

    def test_positive_amount(self, sample_invoice):
        """Vérifie qu'un règlement nul est refusé par la base."""
        with pytest.raises(IntegrityError), transaction.atomic():
            Payment.objects.create(
                invoice=sample_invoice,
                amount=Decimal("0"),
                payment_date=date(2026, 3, 20),
                payment_method="CASH",
            )

    def test_str(self, sample_invoice):
        """Vérifie la représentation textuelle."""
        payment = Payment(
            invoice=sample_invoice,
            amount=Decimal("5000.00"),
            payment_date=date(2026, 3, 20),
            payment_method="MOBILE_MONEY",
        )
        assert str(payment) == "Règlement 5000.00 (Mobile Money)"
