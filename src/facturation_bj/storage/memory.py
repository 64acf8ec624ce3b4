"""Stockage en mémoire pour les tests et le développement.

FR: Conserve sociétés, clients, documents, règlements et journal d'audit
    en mémoire. Un verrou réentrant est tenu pendant toute la durée d'un
    bloc ``atomic()`` ; un échec restaure l'instantané pris à l'entrée du
    bloc. L'unicité (société, série, numéro) est contrôlée à l'écriture.
    Les objets sont copiés en entrée et en sortie.
EN: Keeps companies, clients, documents, payments and audit log in memory.
    A reentrant lock is held for the whole ``atomic()`` block; a failure
    restores the snapshot taken on entry. Uniqueness is checked on write.
    Objects are copied in and out.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from facturation_bj.errors import DuplicateNumberError, NotFound
from facturation_bj.lifecycle.manager import effective_status
from facturation_bj.models.audit import AuditEntry
from facturation_bj.models.invoice import Invoice
from facturation_bj.models.party import Client, Company
from facturation_bj.models.payment import Payment
from facturation_bj.numbering.allocator import parse_ordinal
from facturation_bj.storage.base import BaseInvoiceStore
from facturation_bj.storage.models import (
    InvoiceSearchFilters,
    InvoiceSearchResponse,
    InvoiceSummary,
)


@dataclass
class _State:
    """Contenu du stockage, copié pour les instantanés."""

    companies: dict[str, Company] = field(default_factory=dict)
    clients: dict[str, Client] = field(default_factory=dict)
    invoices: dict[str, Invoice] = field(default_factory=dict)
    payments: dict[str, list[Payment]] = field(default_factory=dict)
    audit: list[AuditEntry] = field(default_factory=list)


class MemoryInvoiceStore(BaseInvoiceStore):
    """Stockage de documents en mémoire, sûr entre threads.

    FR: Implémente l'interface BaseInvoiceStore complète. Les écritures
        concurrentes sont sérialisées par le verrou.
    EN: Implements the full BaseInvoiceStore interface. Concurrent writes
        are serialized by the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = _State()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = copy.deepcopy(self._state)
            try:
                yield
            except BaseException:
                self._state = snapshot
                raise

    # --- Référentiel ---

    def get_company(self, company_id: str) -> Company:
        with self._lock:
            company = self._state.companies.get(company_id)
            if company is None:
                msg = f"Société introuvable : {company_id}"
                raise NotFound(msg)
            return company.model_copy(deep=True)

    def get_client(self, client_id: str) -> Client:
        with self._lock:
            client = self._state.clients.get(client_id)
            if client is None:
                msg = f"Client introuvable : {client_id}"
                raise NotFound(msg)
            return client.model_copy(deep=True)

    # --- Documents ---

    def get_invoice(self, invoice_id: str, for_update: bool = False) -> Invoice:
        with self._lock:
            return self._get_stored(invoice_id).model_copy(deep=True)

    def add_invoice(self, invoice: Invoice) -> Invoice:
        with self._lock:
            self._check_unique(invoice)
            self._state.invoices[invoice.id] = invoice.model_copy(deep=True)
            return invoice.model_copy(deep=True)

    def update_invoice(self, invoice: Invoice) -> Invoice:
        with self._lock:
            self._get_stored(invoice.id)
            self._check_unique(invoice)
            self._state.invoices[invoice.id] = invoice.model_copy(deep=True)
            return invoice.model_copy(deep=True)

    def delete_invoice(self, invoice_id: str) -> None:
        with self._lock:
            self._get_stored(invoice_id)
            del self._state.invoices[invoice_id]
            self._state.payments.pop(invoice_id, None)

    def max_ordinal(self, company_id: str, series: str, year: int) -> int:
        with self._lock:
            ordinals = [
                parse_ordinal(inv.number, series, year)
                for inv in self._state.invoices.values()
                if inv.company_id == company_id and inv.series == series
            ]
            return max((o for o in ordinals if o is not None), default=0)

    def list_credit_notes(self, original_invoice_id: str) -> list[Invoice]:
        with self._lock:
            return [
                inv.model_copy(deep=True)
                for inv in self._state.invoices.values()
                if inv.original_invoice_id == original_invoice_id
            ]

    def search_invoices(self, filters: InvoiceSearchFilters) -> InvoiceSearchResponse:
        """Recherche des documents avec filtres en mémoire."""
        with self._lock:
            matches = [
                inv for inv in self._state.invoices.values() if self._matches(inv, filters)
            ]
            matches.sort(key=lambda inv: (inv.issue_date, inv.created_at), reverse=True)

            total_count = len(matches)
            start = (filters.page - 1) * filters.page_size
            end = start + filters.page_size

            return InvoiceSearchResponse(
                results=[self._summary(inv) for inv in matches[start:end]],
                total_count=total_count,
                page=filters.page,
                page_size=filters.page_size,
            )

    # --- Règlements ---

    def add_payment(self, payment: Payment) -> Payment:
        with self._lock:
            self._get_stored(payment.invoice_id)
            self._state.payments.setdefault(payment.invoice_id, []).append(
                payment.model_copy(deep=True)
            )
            return payment.model_copy(deep=True)

    def list_payments(self, invoice_id: str) -> list[Payment]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._state.payments.get(invoice_id, [])]

    # --- Audit ---

    def record_audit(self, entry: AuditEntry) -> None:
        with self._lock:
            self._state.audit.append(entry.model_copy(deep=True))

    def list_audit(self, entity_id: str) -> list[AuditEntry]:
        with self._lock:
            return [
                e.model_copy(deep=True) for e in self._state.audit if e.entity_id == entity_id
            ]

    # --- Méthodes utilitaires (propres au stockage mémoire) ---

    def add_company(self, company: Company) -> Company:
        """Enregistre une société."""
        with self._lock:
            self._state.companies[company.id] = company.model_copy(deep=True)
            return company

    def add_client(self, client: Client) -> Client:
        """Enregistre un client."""
        with self._lock:
            self._state.clients[client.id] = client.model_copy(deep=True)
            return client

    # --- Interne ---

    def _get_stored(self, invoice_id: str) -> Invoice:
        invoice = self._state.invoices.get(invoice_id)
        if invoice is None:
            msg = f"Facture introuvable : {invoice_id}"
            raise NotFound(msg)
        return invoice

    def _check_unique(self, invoice: Invoice) -> None:
        if invoice.number is None:
            return
        for other in self._state.invoices.values():
            if (
                other.id != invoice.id
                and other.company_id == invoice.company_id
                and other.series == invoice.series
                and other.number == invoice.number
            ):
                msg = f"Numéro déjà attribué : {invoice.number}"
                raise DuplicateNumberError(msg)

    def _client_name(self, client_id: str) -> str:
        client = self._state.clients.get(client_id)
        return client.name if client else ""

    def _matches(self, inv: Invoice, filters: InvoiceSearchFilters) -> bool:
        if filters.company_id is not None and inv.company_id != filters.company_id:
            return False
        if filters.statuses:
            status = inv.status if filters.as_of is None else effective_status(inv, filters.as_of)
            if status not in filters.statuses:
                return False
        if filters.type is not None and inv.type != filters.type:
            return False
        if filters.types and inv.type not in filters.types:
            return False
        if filters.client_id is not None and inv.client_id != filters.client_id:
            return False
        if filters.date_from is not None and inv.issue_date < filters.date_from:
            return False
        if filters.date_to is not None and inv.issue_date > filters.date_to:
            return False
        if filters.due_before is not None and (
            inv.due_date is None or inv.due_date >= filters.due_before
        ):
            return False
        if filters.search:
            needle = filters.search.casefold()
            haystacks = [inv.number or "", self._client_name(inv.client_id)]
            if not any(needle in h.casefold() for h in haystacks):
                return False
        return True

    def _summary(self, inv: Invoice) -> InvoiceSummary:
        return InvoiceSummary(
            id=inv.id,
            number=inv.number,
            type=inv.type,
            status=inv.status,
            client_id=inv.client_id,
            client_name=self._client_name(inv.client_id),
            issue_date=inv.issue_date,
            due_date=inv.due_date,
            total_ttc=inv.total_ttc,
            amount_paid=inv.amount_paid,
            mecef_status=inv.mecef_status,
        )
