"""Scénario complet : de la saisie au règlement.

FR: Une société émet deux factures certifiées, encaisse la première en
    deux fois et consulte ses factures en retard.
EN: A company issues two certified invoices, collects the first one in
    two payments and lists its overdue invoices.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from facturation_bj.models.enums import InvoiceStatus, MecefStatus, PaymentMethod, TvaGroup
from facturation_bj.models.payment import PaymentInput
from facturation_bj.storage.models import InvoiceSearchFilters


def test_invoice_lifecycle(service, clock, company, customer, draft_factory, line_factory):
    first = service.create_draft(
        company.id,
        draft_factory(customer, due_date=date(2026, 4, 15)),
        created_by_id="comptable",
    )
    assert first.total_ttc == Decimal("118000.00")
    assert first.tax_summaries[0].taxable_amount == Decimal("100000.00")

    first = service.finalize(first.id, user_id="comptable")
    assert first.number == "FAC-2026-001"
    assert first.mecef_status == MecefStatus.CERTIFIED

    second = service.create_and_finalize(
        company.id,
        draft_factory(
            customer,
            due_date=date(2026, 3, 31),
            lines=[
                line_factory("10", "2500", description="Cartouches d'encre"),
                line_factory(
                    "1",
                    "15000",
                    description="Livraison",
                    tva_rate=Decimal("0"),
                    tva_group=TvaGroup.A,
                    discount_percent=Decimal("10"),
                ),
            ],
        ),
    )
    assert second.number == "FAC-2026-002"
    assert second.total_ht == Decimal("38500.00")
    assert second.total_tva == Decimal("4500.00")
    assert second.total_ttc == Decimal("43000.00")

    service.record_payment(
        first.id,
        PaymentInput(amount=Decimal("18000"), payment_method=PaymentMethod.MOBILE_MONEY),
    )
    assert service.get(first.id).status == InvoiceStatus.PARTIALLY_PAID
    service.record_payment(
        first.id,
        PaymentInput(amount=Decimal("100000"), payment_method=PaymentMethod.BANK_TRANSFER),
    )
    assert service.get(first.id).status == InvoiceStatus.PAID

    clock.now = datetime(2026, 4, 20, 10, 0, tzinfo=UTC)
    overdue = service.search(
        InvoiceSearchFilters(company_id=company.id, statuses=[InvoiceStatus.OVERDUE])
    )
    assert [r.number for r in overdue.results] == ["FAC-2026-002"]

    everything = service.search(InvoiceSearchFilters(company_id=company.id))
    assert {r.number: r.status for r in everything.results} == {
        "FAC-2026-001": InvoiceStatus.PAID,
        "FAC-2026-002": InvoiceStatus.OVERDUE,
    }
