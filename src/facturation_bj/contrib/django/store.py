"""Stockage des documents sur l'ORM Django.

FR: Implémente BaseInvoiceStore avec ``transaction.atomic`` et
    ``select_for_update``. Une violation des contraintes d'unicité de
    numérotation est traduite en DuplicateNumberError pour que
    l'allocateur relance avec l'ordinal suivant.
EN: Implements BaseInvoiceStore on top of ``transaction.atomic`` and
    ``select_for_update``. Numbering uniqueness violations are translated
    into DuplicateNumberError so the allocator retries.
"""

from __future__ import annotations

import logging
import operator
from contextlib import AbstractContextManager
from datetime import date
from functools import reduce

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, Max, Q

from facturation_bj.contrib.django import models as db
from facturation_bj.errors import DuplicateNumberError, NotFound
from facturation_bj.lifecycle.manager import INVOICE_FAMILY, QUOTE_FAMILY
from facturation_bj.models.audit import AuditEntry
from facturation_bj.models.enums import InvoiceStatus
from facturation_bj.models.invoice import Invoice
from facturation_bj.models.party import Client, Company
from facturation_bj.models.payment import Payment
from facturation_bj.numbering.allocator import split_number
from facturation_bj.storage.base import BaseInvoiceStore
from facturation_bj.storage.models import (
    InvoiceSearchFilters,
    InvoiceSearchResponse,
    InvoiceSummary,
)

logger = logging.getLogger(__name__)

# Erreurs levées par l'ORM pour un identifiant mal formé (UUID invalide)
_LOOKUP_ERRORS = (ObjectDoesNotExist, ValidationError, ValueError)

_DERIVED_STATUSES = frozenset({InvoiceStatus.OVERDUE, InvoiceStatus.EXPIRED})


def _effective_status_q(statuses: list[InvoiceStatus], as_of: date) -> Q:
    """Filtre sur les statuts visibles à ``as_of`` (voir ``effective_status``)."""
    past_due = Q(due_date__lt=as_of)
    overdue = (
        Q(type__in=[str(t) for t in INVOICE_FAMILY])
        & Q(status__in=[InvoiceStatus.SENT.value, InvoiceStatus.PARTIALLY_PAID.value])
        & Q(amount_paid__lt=F("total_ttc"))
        & past_due
    )
    expired = (
        Q(type__in=[str(t) for t in QUOTE_FAMILY])
        & Q(status=InvoiceStatus.SENT.value)
        & past_due
    )

    conditions: list[Q] = []
    stored = [str(s) for s in statuses if s not in _DERIVED_STATUSES]
    if stored:
        # Un document échu n'apparaît plus sous son statut enregistré
        conditions.append(Q(status__in=stored) & ~overdue & ~expired)
    if InvoiceStatus.OVERDUE in statuses:
        conditions.append(overdue)
    if InvoiceStatus.EXPIRED in statuses:
        conditions.append(expired)
    return reduce(operator.or_, conditions)


class DjangoInvoiceStore(BaseInvoiceStore):
    """Stockage de documents adossé à la base Django.

    FR: Les blocs ``atomic()`` imbriqués deviennent des points de
        sauvegarde, comme ceux de Django.
    EN: Nested ``atomic()`` blocks become savepoints, as in Django.
    """

    def __init__(self, using: str | None = None) -> None:
        self.using = using

    def atomic(self) -> AbstractContextManager[None]:
        return transaction.atomic(using=self.using)

    # --- Référentiel ---

    def get_company(self, company_id: str) -> Company:
        try:
            return db.Company.objects.using(self.using).get(pk=company_id).to_pydantic()
        except _LOOKUP_ERRORS as exc:
            msg = f"Société introuvable : {company_id}"
            raise NotFound(msg) from exc

    def get_client(self, client_id: str) -> Client:
        try:
            return db.Client.objects.using(self.using).get(pk=client_id).to_pydantic()
        except _LOOKUP_ERRORS as exc:
            msg = f"Client introuvable : {client_id}"
            raise NotFound(msg) from exc

    # --- Documents ---

    def get_invoice(self, invoice_id: str, for_update: bool = False) -> Invoice:
        return self._get_row(invoice_id, for_update=for_update).to_pydantic()

    def add_invoice(self, invoice: Invoice) -> Invoice:
        row = db.Invoice.from_pydantic(invoice)
        self._save(row, invoice, force_insert=True)
        self._replace_lines(row, invoice)
        return self.get_invoice(invoice.id)

    def update_invoice(self, invoice: Invoice) -> Invoice:
        stored = self._get_row(invoice.id, for_update=True)
        row = db.Invoice.from_pydantic(invoice)
        self._save(row, invoice, force_update=True)
        # Les lignes d'un document émis sont figées
        if stored.status == InvoiceStatus.DRAFT:
            self._replace_lines(row, invoice)
        return self.get_invoice(invoice.id)

    def delete_invoice(self, invoice_id: str) -> None:
        self._get_row(invoice_id).delete()

    def max_ordinal(self, company_id: str, series: str, year: int) -> int:
        result = (
            db.Invoice.objects.using(self.using)
            .filter(company_id=company_id, series=series, fiscal_year=year)
            .aggregate(max_ordinal=Max("ordinal"))
        )
        return result["max_ordinal"] or 0

    def list_credit_notes(self, original_invoice_id: str) -> list[Invoice]:
        rows = (
            db.Invoice.objects.using(self.using)
            .filter(original_invoice_id=original_invoice_id)
            .prefetch_related("lines")
        )
        return [row.to_pydantic() for row in rows]

    def search_invoices(self, filters: InvoiceSearchFilters) -> InvoiceSearchResponse:
        """Recherche paginée via l'ORM."""
        qs = db.Invoice.objects.using(self.using).select_related("client")

        if filters.company_id is not None:
            qs = qs.filter(company_id=filters.company_id)
        if filters.statuses and filters.as_of is None:
            qs = qs.filter(status__in=[str(s) for s in filters.statuses])
        elif filters.statuses:
            qs = qs.filter(_effective_status_q(filters.statuses, filters.as_of))
        if filters.type is not None:
            qs = qs.filter(type=str(filters.type))
        if filters.types:
            qs = qs.filter(type__in=[str(t) for t in filters.types])
        if filters.client_id is not None:
            qs = qs.filter(client_id=filters.client_id)
        if filters.date_from is not None:
            qs = qs.filter(issue_date__gte=filters.date_from)
        if filters.date_to is not None:
            qs = qs.filter(issue_date__lte=filters.date_to)
        if filters.due_before is not None:
            qs = qs.filter(due_date__lt=filters.due_before)
        if filters.search:
            qs = qs.filter(
                Q(number__icontains=filters.search) | Q(client__name__icontains=filters.search)
            )

        qs = qs.order_by("-issue_date", "-created_at")
        total_count = qs.count()
        start = (filters.page - 1) * filters.page_size
        rows = qs[start : start + filters.page_size]

        return InvoiceSearchResponse(
            results=[self._summary(row) for row in rows],
            total_count=total_count,
            page=filters.page,
            page_size=filters.page_size,
        )

    # --- Règlements ---

    def add_payment(self, payment: Payment) -> Payment:
        self._get_row(payment.invoice_id)
        row = db.Payment.from_pydantic(payment)
        row.save(force_insert=True, using=self.using)
        return row.to_pydantic()

    def list_payments(self, invoice_id: str) -> list[Payment]:
        rows = db.Payment.objects.using(self.using).filter(invoice_id=invoice_id)
        return [row.to_pydantic() for row in rows]

    # --- Audit ---

    def record_audit(self, entry: AuditEntry) -> None:
        db.AuditLog.from_pydantic(entry).save(using=self.using)

    def list_audit(self, entity_id: str) -> list[AuditEntry]:
        rows = db.AuditLog.objects.using(self.using).filter(entity_id=entity_id).order_by("pk")
        return [row.to_pydantic() for row in rows]

    # --- Interne ---

    def _get_row(self, invoice_id: str, for_update: bool = False) -> db.Invoice:
        qs = db.Invoice.objects.using(self.using)
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=invoice_id)
        except _LOOKUP_ERRORS as exc:
            msg = f"Facture introuvable : {invoice_id}"
            raise NotFound(msg) from exc

    def _save(self, row: db.Invoice, invoice: Invoice, **kwargs: bool) -> None:
        """Sauvegarde dans un point de sauvegarde et traduit les doublons."""
        try:
            with transaction.atomic(using=self.using):
                row.save(using=self.using, **kwargs)
        except IntegrityError:
            if self._number_taken(invoice):
                logger.info("Numéro %s déjà attribué", invoice.number)
                msg = f"Numéro déjà attribué : {invoice.number}"
                raise DuplicateNumberError(msg) from None
            raise

    def _number_taken(self, invoice: Invoice) -> bool:
        if invoice.number is None:
            return False
        same_number = Q(number=invoice.number)
        parts = split_number(invoice.number)
        if parts is not None:
            same_number |= Q(fiscal_year=parts[1], ordinal=parts[2])
        return (
            db.Invoice.objects.using(self.using)
            .filter(same_number, company_id=invoice.company_id, series=invoice.series)
            .exclude(pk=invoice.id)
            .exists()
        )

    def _replace_lines(self, row: db.Invoice, invoice: Invoice) -> None:
        row.lines.all().delete()
        db.InvoiceLine.objects.using(self.using).bulk_create(
            [db.InvoiceLine.from_pydantic(line, invoice.id) for line in invoice.lines]
        )

    def _summary(self, row: db.Invoice) -> InvoiceSummary:
        return InvoiceSummary(
            id=str(row.pk),
            number=row.number,
            type=row.type,
            status=row.status,
            client_id=str(row.client_id),
            client_name=row.client.name,
            issue_date=row.issue_date,
            due_date=row.due_date,
            total_ttc=row.total_ttc,
            amount_paid=row.amount_paid,
            mecef_status=row.mecef_status,
        )
