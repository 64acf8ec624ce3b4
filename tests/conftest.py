"""Fixtures partagées : stockage mémoire, dispositif simulé, horloge fixe."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from facturation_bj.certification.connectors.simulated import SimulatedCertifier
from facturation_bj.lifecycle.service import InvoiceService
from facturation_bj.models.enums import DocumentType
from facturation_bj.models.invoice import InvoiceDraft, InvoiceLineInput
from facturation_bj.models.party import Client, Company
from facturation_bj.storage.memory import MemoryInvoiceStore

FIXED_NOW = datetime(2026, 3, 16, 9, 30, tzinfo=UTC)


class FakeClock:
    """Horloge contrôlée par le test."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_line(
    quantity: str = "2",
    unit_price_ht: str = "50000",
    **kwargs: object,
) -> InvoiceLineInput:
    """Ligne saisie : 2 × 50 000 HT, TVA 18 % (groupe B) par défaut."""
    return InvoiceLineInput(
        description=kwargs.pop("description", "Prestation de conseil"),
        quantity=Decimal(quantity),
        unit_price_ht=Decimal(unit_price_ht),
        **kwargs,
    )


def make_draft(customer: Client, **kwargs: object) -> InvoiceDraft:
    """Brouillon de facture d'une ligne pour le client donné."""
    kwargs.setdefault("lines", [make_line()])
    return InvoiceDraft(client_id=customer.id, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def store() -> MemoryInvoiceStore:
    return MemoryInvoiceStore()


@pytest.fixture
def certifier() -> SimulatedCertifier:
    return SimulatedCertifier()


@pytest.fixture
def company(store: MemoryInvoiceStore) -> Company:
    """Société émettrice avec IFU."""
    return store.add_company(Company(name="Bénin Services SARL", ifu="3201900123456"))


@pytest.fixture
def customer(store: MemoryInvoiceStore, company: Company) -> Client:
    """Client de la société (nommé ainsi pour ne pas masquer ``client`` de Django)."""
    return store.add_client(
        Client(
            company_id=company.id,
            name="Société Atlantique",
            ifu="0202212345678",
            email="compta@atlantique.bj",
        )
    )


@pytest.fixture
def service(
    store: MemoryInvoiceStore,
    certifier: SimulatedCertifier,
    clock: FakeClock,
) -> InvoiceService:
    return InvoiceService(store, certifier, clock=clock)


@pytest.fixture
def draft_invoice(service: InvoiceService, company: Company, customer: Client):
    """Facture brouillon de 118 000 TTC, échéance au 15 avril 2026."""
    return service.create_draft(
        company.id,
        make_draft(customer, due_date=date(2026, 4, 15)),
    )


@pytest.fixture
def sent_invoice(service: InvoiceService, draft_invoice):
    """Facture émise et certifiée (FAC-2026-001)."""
    return service.finalize(draft_invoice.id)


@pytest.fixture
def sent_quote(service: InvoiceService, company: Company, customer: Client):
    """Devis émis, valable jusqu'au 31 mars 2026."""
    quote = service.create_draft(
        company.id,
        make_draft(customer, type=DocumentType.QUOTE, due_date=date(2026, 3, 31)),
    )
    return service.finalize(quote.id)


@pytest.fixture
def line_factory():
    """Fabrique de lignes saisies (voir ``make_line``)."""
    return make_line


@pytest.fixture
def draft_factory():
    """Fabrique de brouillons (voir ``make_draft``)."""
    return make_draft
