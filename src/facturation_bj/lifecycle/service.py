"""Orchestration du cycle de vie des documents.

FR: Le service enchaîne le calcul des lignes, la certification MECeF,
    l'attribution du numéro légal et la persistance. Chaque opération est
    tout ou rien : la certification a lieu avant l'ouverture de la
    transaction d'écriture, qui attribue le numéro et enregistre le
    document émis. Un échec de certification laisse le document en
    brouillon (MECeF PENDING), sans numéro.
EN: The service chains line computation, MECeF certification, legal
    number allocation and persistence. Each operation is all-or-nothing:
    certification happens before the write transaction, which allocates
    the number and stores the issued document. A certification failure
    leaves the document DRAFT (MECeF PENDING), unnumbered.

Le service est synchrone ; le connecteur de certification, asynchrone,
est exécuté avec ``asyncio.run``. Depuis une boucle d'événements, appeler
le service via ``asgiref.sync.sync_to_async``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any, ParamSpec, TypeVar

from pydantic import ValidationError

from facturation_bj.certification.base import BaseCertifier
from facturation_bj.certification.models import (
    CertificationItem,
    CertificationRequest,
    CertificationResult,
)
from facturation_bj.config import InvoicingSettings
from facturation_bj.errors import (
    CertificationFailure,
    FacturationError,
    InternalError,
    InvalidAmount,
    InvalidCreditNote,
    InvalidDates,
    InvalidLineInput,
    InvalidState,
    NotFound,
    PaymentExceedsBalance,
)
from facturation_bj.lifecycle.manager import (
    QUOTE_FAMILY,
    default_mecef_type,
    effective_status,
    ensure_transition,
    mecef_type_allowed,
    requires_certification,
    status_after_payment,
)
from facturation_bj.models.audit import AuditEntity, AuditEntry
from facturation_bj.models.enums import (
    AuditAction,
    DocumentType,
    InvoiceStatus,
    MecefStatus,
    MecefType,
)
from facturation_bj.models.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceLine,
    InvoiceLineInput,
    InvoiceUpdate,
    build_lines,
)
from facturation_bj.models.party import Company
from facturation_bj.models.payment import Payment, PaymentInput
from facturation_bj.money import Money
from facturation_bj.numbering.allocator import SequenceAllocator
from facturation_bj.storage.base import BaseInvoiceStore
from facturation_bj.storage.models import InvoiceSearchFilters, InvoiceSearchResponse

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

# Champs conservés dans le journal d'audit
_AUDIT_FIELDS = {
    "status",
    "type",
    "series",
    "number",
    "client_id",
    "issue_date",
    "due_date",
    "total_ht",
    "total_tva",
    "total_ttc",
    "amount_paid",
    "mecef_status",
    "mecef_counters",
}

_ISSUED_STATUSES = frozenset(
    {InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID}
)


def _guarded(method: Callable[P, R]) -> Callable[P, R]:
    """Convertit les erreurs inattendues en InternalError.

    Les erreurs métier (FacturationError) et les erreurs de validation
    Pydantic remontent telles quelles.
    """

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return method(*args, **kwargs)
        except (FacturationError, ValidationError):
            raise
        except Exception as exc:
            logger.exception("Erreur inattendue dans %s", method.__name__)
            msg = f"Erreur inattendue dans {method.__name__} : {exc}"
            raise InternalError(msg) from exc

    return wrapper


def _audit_values(invoice: Invoice) -> dict[str, Any]:
    return invoice.model_dump(mode="json", include=_AUDIT_FIELDS)


def _check_dates(issue_date: date, due_date: date | None) -> None:
    if due_date is not None and due_date < issue_date:
        msg = f"L'échéance ({due_date}) ne peut pas précéder la date d'émission ({issue_date})"
        raise InvalidDates(msg)


class InvoiceService:
    """Service de cycle de vie des factures, devis et avoirs.

    FR: Point d'entrée unique des opérations de facturation : création de
        brouillon, émission (certification + numérotation), règlements,
        modification, suppression, annulation et conversion de devis.
    EN: Single entry point of invoicing operations.

    Args:
        store: Stockage transactionnel.
        certifier: Connecteur MECeF.
        settings: Paramètres (valeurs par défaut si absent).
        clock: Horloge retournant un datetime aware (UTC par défaut). La date
            du jour et l'année de numérotation sont lues dans le fuseau
            ``settings.business_timezone``.
    """

    def __init__(
        self,
        store: BaseInvoiceStore,
        certifier: BaseCertifier,
        settings: InvoicingSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.certifier = certifier
        self.settings = settings or InvoicingSettings()
        self.allocator = SequenceAllocator(store, self.settings.max_allocation_attempts)
        self._clock = clock or (lambda: datetime.now(UTC))

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._now().astimezone(self.settings.tzinfo).date()

    # ------------------------------------------------------------------
    # Création
    # ------------------------------------------------------------------

    @_guarded
    def create_draft(
        self,
        company_id: str,
        draft: InvoiceDraft,
        created_by_id: str | None = None,
    ) -> Invoice:
        """Crée un brouillon, sans numéro ni certification.

        Raises:
            NotFound: Société ou client introuvable.
            InvalidLineInput: Aucune ligne ou ligne hors bornes.
            InvalidDates: Échéance antérieure à la date d'émission.
            InvalidCreditNote: Avoir sans facture d'origine valide.
        """
        invoice = self._build_invoice(company_id, draft, created_by_id)
        with self.store.atomic():
            stored = self.store.add_invoice(invoice)
            self._audit(AuditAction.CREATE, stored, user_id=created_by_id, new=stored)
        logger.info("Brouillon %s créé (%s)", stored.id, stored.type)
        return stored

    @_guarded
    def create_and_finalize(
        self,
        company_id: str,
        draft: InvoiceDraft,
        created_by_id: str | None = None,
    ) -> Invoice:
        """Crée et émet un document en une seule opération.

        FR: Rien n'est enregistré si la certification ou l'attribution du
            numéro échoue.
        EN: Nothing is stored if certification or allocation fails.
        """
        invoice = self._build_invoice(company_id, draft, created_by_id)
        company = self.store.get_company(company_id)
        original = self._check_issuable(invoice)
        certification = self._certify_if_required(invoice, company, original)

        def persist(number: str) -> Invoice:
            if original is not None:
                self._check_credit_cap(invoice, original.id)
            issued = self._issued(invoice, company, number, certification)
            stored = self.store.add_invoice(issued)
            self._audit(AuditAction.CREATE, stored, user_id=created_by_id, new=stored)
            self._audit(AuditAction.FINALIZE, stored, user_id=created_by_id, new=stored)
            return stored

        stored = self.allocator.run(
            company_id, company.series_for(invoice.type), self._today().year, persist
        )
        logger.info("Document %s créé et émis sous le numéro %s", stored.id, stored.number)
        return stored

    # ------------------------------------------------------------------
    # Émission
    # ------------------------------------------------------------------

    @_guarded
    def finalize(self, invoice_id: str, user_id: str | None = None) -> Invoice:
        """Émet un brouillon : certification MECeF puis numérotation.

        Raises:
            NotFound: Document introuvable.
            InvalidState: Document déjà émis, annulé, ou modifié pendant
                l'émission.
            InvalidCreditNote: Avoir dépassant le solde créditable.
            CertificationFailure: Le document reste en brouillon.
            AllocationConflict: Conflits de numérotation répétés.
        """
        invoice = self.store.get_invoice(invoice_id)
        ensure_transition(invoice.type, invoice.status, InvoiceStatus.SENT)
        company = self.store.get_company(invoice.company_id)
        original = self._check_issuable(invoice)
        certification = self._certify_if_required(invoice, company, original)

        def persist(number: str) -> Invoice:
            current = self.store.get_invoice(invoice_id, for_update=True)
            if current.status != InvoiceStatus.DRAFT:
                msg = f"Le document {invoice_id} a été émis ou annulé entre-temps"
                raise InvalidState(msg)
            if current.lines != invoice.lines or current.updated_at != invoice.updated_at:
                msg = f"Le document {invoice_id} a été modifié pendant son émission"
                raise InvalidState(msg)
            if original is not None:
                self._check_credit_cap(current, original.id)
            issued = self._issued(current, company, number, certification)
            stored = self.store.update_invoice(issued)
            self._audit(
                AuditAction.FINALIZE, stored, user_id=user_id, old=current, new=stored
            )
            return stored

        stored = self.allocator.run(
            invoice.company_id, company.series_for(invoice.type), self._today().year, persist
        )
        logger.info("Document %s émis sous le numéro %s", stored.id, stored.number)
        return stored

    # ------------------------------------------------------------------
    # Règlements
    # ------------------------------------------------------------------

    @_guarded
    def record_payment(
        self,
        invoice_id: str,
        payment: PaymentInput,
        user_id: str | None = None,
    ) -> Payment:
        """Enregistre un règlement sur une facture émise.

        Raises:
            InvalidAmount: Montant nul ou négatif.
            PaymentExceedsBalance: Montant supérieur au reste à payer.
            InvalidState: Document non facturable (brouillon, annulé,
                devis, avoir) ou déjà payé.
        """
        amount = Money.of(payment.amount, field="amount", allow_negative=True).rounded()
        if amount.is_negative or amount.is_zero:
            msg = f"Le montant du règlement doit être strictement positif (reçu : {amount})"
            raise InvalidAmount(msg)

        with self.store.atomic():
            invoice = self.store.get_invoice(invoice_id, for_update=True)
            if invoice.type != DocumentType.INVOICE:
                msg = f"Seules les factures peuvent recevoir un règlement ({invoice.type})"
                raise InvalidState(msg)
            if invoice.status in (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED):
                msg = f"Règlement impossible sur un document {invoice.status}"
                raise InvalidState(msg)

            remaining = Money(invoice.total_ttc) - Money(invoice.amount_paid)
            if amount > remaining:
                msg = (
                    f"Le règlement ({amount}) dépasse le reste à payer ({remaining}) "
                    f"de la facture {invoice.number}"
                )
                raise PaymentExceedsBalance(msg, remaining=remaining.amount)

            amount_paid = (Money(invoice.amount_paid) + amount).amount
            target = status_after_payment(invoice.total_ttc, amount_paid)
            ensure_transition(invoice.type, invoice.status, target)

            record = Payment(
                invoice_id=invoice_id,
                amount=amount.amount,
                payment_date=payment.payment_date or self._today(),
                payment_method=payment.payment_method,
                reference=payment.reference,
                notes=payment.notes,
                created_at=self._now(),
            )
            stored = self.store.add_payment(record)
            updated = self.store.update_invoice(
                invoice.model_copy(
                    update={
                        "amount_paid": amount_paid,
                        "status": target,
                        "updated_at": self._now(),
                    }
                )
            )
            self.store.record_audit(
                AuditEntry(
                    company_id=invoice.company_id,
                    action=AuditAction.PAYMENT,
                    entity_type=AuditEntity.PAYMENT,
                    entity_id=stored.id,
                    user_id=user_id,
                    old_values=_audit_values(invoice),
                    new_values={
                        **_audit_values(updated),
                        "payment": stored.model_dump(mode="json"),
                    },
                    created_at=self._now(),
                )
            )

        logger.info(
            "Règlement de %s enregistré sur %s (statut %s)",
            amount,
            invoice.number,
            target,
        )
        return stored

    @_guarded
    def list_payments(self, invoice_id: str) -> list[Payment]:
        """Règlements d'un document."""
        self.store.get_invoice(invoice_id)
        return self.store.list_payments(invoice_id)

    # ------------------------------------------------------------------
    # Modification, suppression, annulation
    # ------------------------------------------------------------------

    @_guarded
    def update(
        self,
        invoice_id: str,
        changes: InvoiceUpdate,
        user_id: str | None = None,
    ) -> Invoice:
        """Modifie un brouillon ; ``lines`` remplace toutes les lignes.

        Raises:
            InvalidState: Le document n'est plus un brouillon.
            InvalidDates: Échéance antérieure à la date d'émission.
        """
        data = changes.model_dump(exclude_unset=True)

        with self.store.atomic():
            invoice = self.store.get_invoice(invoice_id, for_update=True)
            if invoice.status != InvoiceStatus.DRAFT:
                msg = f"Seul un brouillon peut être modifié (statut : {invoice.status})"
                raise InvalidState(msg)

            updates: dict[str, Any] = {}
            if data.get("client_id") is not None:
                self._get_client_of(invoice.company_id, changes.client_id)
                updates["client_id"] = changes.client_id
            if data.get("issue_date") is not None:
                updates["issue_date"] = data["issue_date"]
            for name in ("due_date", "notes", "legal_mentions"):
                if name in data:
                    updates[name] = data[name]
            if "lines" in data:
                updates["lines"] = self._compute_lines(changes.lines or [])
            if "mecef_type" in data:
                updates["mecef_type"] = self._resolve_mecef_type(
                    invoice.type, changes.mecef_type
                )
            if "original_invoice_id" in data:
                updates["original_invoice_id"] = changes.original_invoice_id
                if invoice.type == DocumentType.CREDIT_NOTE:
                    self._get_original(invoice.company_id, changes.original_invoice_id)
                elif changes.original_invoice_id is not None:
                    msg = "Seul un avoir peut référencer une facture d'origine"
                    raise InvalidCreditNote(msg)
            _check_dates(
                updates.get("issue_date", invoice.issue_date),
                updates.get("due_date", invoice.due_date),
            )
            updates["updated_at"] = self._now()

            updated = Invoice.model_validate(invoice.model_dump() | updates)
            stored = self.store.update_invoice(updated)
            self._audit(AuditAction.UPDATE, stored, user_id=user_id, old=invoice, new=stored)

        logger.info("Brouillon %s modifié", invoice_id)
        return stored

    @_guarded
    def delete(self, invoice_id: str, user_id: str | None = None) -> None:
        """Supprime un brouillon sans règlement.

        Raises:
            InvalidState: Document émis ou déjà réglé.
        """
        with self.store.atomic():
            invoice = self.store.get_invoice(invoice_id, for_update=True)
            if invoice.status != InvoiceStatus.DRAFT:
                msg = f"Seul un brouillon peut être supprimé (statut : {invoice.status})"
                raise InvalidState(msg)
            self._ensure_no_payment(invoice)
            self.store.delete_invoice(invoice_id)
            self._audit(AuditAction.DELETE, invoice, user_id=user_id, old=invoice)
        logger.info("Brouillon %s supprimé", invoice_id)

    @_guarded
    def cancel(self, invoice_id: str, user_id: str | None = None) -> Invoice:
        """Annule un brouillon sans règlement (statut CANCELLED)."""
        with self.store.atomic():
            invoice = self.store.get_invoice(invoice_id, for_update=True)
            ensure_transition(invoice.type, invoice.status, InvoiceStatus.CANCELLED)
            self._ensure_no_payment(invoice)
            stored = self.store.update_invoice(
                invoice.model_copy(
                    update={"status": InvoiceStatus.CANCELLED, "updated_at": self._now()}
                )
            )
            self._audit(AuditAction.CANCEL, stored, user_id=user_id, old=invoice, new=stored)
        logger.info("Document %s annulé", invoice_id)
        return stored

    # ------------------------------------------------------------------
    # Devis
    # ------------------------------------------------------------------

    @_guarded
    def accept_quote(self, quote_id: str, user_id: str | None = None) -> Invoice:
        """Passe un devis émis et non expiré au statut ACCEPTED."""
        return self._answer_quote(quote_id, InvoiceStatus.ACCEPTED, user_id)

    @_guarded
    def reject_quote(self, quote_id: str, user_id: str | None = None) -> Invoice:
        """Passe un devis émis et non expiré au statut REJECTED."""
        return self._answer_quote(quote_id, InvoiceStatus.REJECTED, user_id)

    @_guarded
    def convert_quote(self, quote_id: str, created_by_id: str | None = None) -> Invoice:
        """Crée une facture brouillon à partir d'un devis.

        FR: Le devis doit être accepté, ou émis et non expiré ; un devis
            émis passe au statut ACCEPTED. La facture reprend le client et
            les lignes, est datée du jour avec une échéance à
            ``default_payment_terms_days`` jours.
        EN: The quote must be accepted, or sent and not expired; a sent
            quote becomes ACCEPTED. The invoice copies client and lines.

        Raises:
            InvalidState: Document qui n'est pas un devis, ou devis
                brouillon, refusé, annulé ou expiré.
        """
        today = self._today()
        with self.store.atomic():
            quote = self.store.get_invoice(quote_id, for_update=True)
            if quote.type != DocumentType.QUOTE:
                msg = f"Ce document n'est pas un devis ({quote.type})"
                raise InvalidState(msg)
            status = effective_status(quote, today)
            if status not in (InvoiceStatus.SENT, InvoiceStatus.ACCEPTED):
                msg = f"Seul un devis émis ou accepté peut être converti (statut : {status})"
                raise InvalidState(msg)

            if quote.status == InvoiceStatus.SENT:
                accepted = quote.model_copy(
                    update={"status": InvoiceStatus.ACCEPTED, "updated_at": self._now()}
                )
                self.store.update_invoice(accepted)
                self._audit(
                    AuditAction.UPDATE, accepted, user_id=created_by_id, old=quote, new=accepted
                )

            invoice = Invoice(
                company_id=quote.company_id,
                client_id=quote.client_id,
                type=DocumentType.INVOICE,
                issue_date=today,
                due_date=today + timedelta(days=self.settings.default_payment_terms_days),
                lines=[InvoiceLine.from_input(line, line.position) for line in quote.lines],
                mecef_type=MecefType.FV,
                notes=f"Facture générée à partir du devis {quote.number}",
                legal_mentions=quote.legal_mentions,
                created_by_id=created_by_id,
                created_at=self._now(),
                updated_at=self._now(),
            )
            stored = self.store.add_invoice(invoice)
            self._audit(AuditAction.CREATE, stored, user_id=created_by_id, new=stored)
            self.store.record_audit(
                AuditEntry(
                    company_id=quote.company_id,
                    action=AuditAction.CONVERT,
                    entity_type=AuditEntity.INVOICE,
                    entity_id=quote.id,
                    user_id=created_by_id,
                    new_values={"invoice_id": stored.id},
                    created_at=self._now(),
                )
            )

        logger.info("Devis %s converti en facture %s", quote.number, stored.id)
        return stored

    # ------------------------------------------------------------------
    # Lecture
    # ------------------------------------------------------------------

    @_guarded
    def get(self, invoice_id: str) -> Invoice:
        """Retourne un document (statut enregistré)."""
        return self.store.get_invoice(invoice_id)

    def status_of(self, invoice: Invoice) -> InvoiceStatus:
        """Statut visible du document à la date du jour (OVERDUE, EXPIRED)."""
        return effective_status(invoice, self._today())

    @_guarded
    def search(self, filters: InvoiceSearchFilters) -> InvoiceSearchResponse:
        """Recherche paginée avec statuts visibles.

        FR: Les statuts filtrés sont les statuts visibles à la date du jour :
            un filtre SENT exclut les factures en retard, un filtre OVERDUE
            ne retient que celles-ci. Le total compte les seuls documents
            retenus.
        EN: Status filters apply to the statuses visible today: SENT
            excludes overdue invoices, OVERDUE keeps only those.
        """
        today = self._today()
        response = self.store.search_invoices(filters.model_copy(update={"as_of": today}))
        results = [
            summary.model_copy(update={"status": effective_status(summary, today)})
            for summary in response.results
        ]
        return response.model_copy(update={"results": results})

    # ------------------------------------------------------------------
    # Interne
    # ------------------------------------------------------------------

    def _build_invoice(
        self,
        company_id: str,
        draft: InvoiceDraft,
        created_by_id: str | None,
    ) -> Invoice:
        self.store.get_company(company_id)
        self._get_client_of(company_id, draft.client_id)
        lines = self._compute_lines(draft.lines)
        mecef_type = self._resolve_mecef_type(draft.type, draft.mecef_type)

        if draft.type == DocumentType.CREDIT_NOTE:
            self._get_original(company_id, draft.original_invoice_id)
        elif draft.original_invoice_id is not None:
            msg = "Seul un avoir peut référencer une facture d'origine"
            raise InvalidCreditNote(msg)

        issue_date = draft.issue_date or self._today()
        _check_dates(issue_date, draft.due_date)

        now = self._now()
        return Invoice(
            company_id=company_id,
            client_id=draft.client_id,
            type=draft.type,
            issue_date=issue_date,
            due_date=draft.due_date,
            lines=lines,
            mecef_type=mecef_type,
            original_invoice_id=draft.original_invoice_id,
            notes=draft.notes,
            legal_mentions=draft.legal_mentions,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )

    def _compute_lines(self, lines: list[InvoiceLineInput]) -> list[InvoiceLine]:
        if not lines:
            msg = "Le document doit contenir au moins une ligne"
            raise InvalidLineInput(msg, field="lines")
        return build_lines(lines)

    def _get_client_of(self, company_id: str, client_id: str | None) -> None:
        if client_id is None:
            msg = "Client obligatoire"
            raise NotFound(msg)
        client = self.store.get_client(client_id)
        if client.company_id != company_id:
            msg = f"Client introuvable : {client_id}"
            raise NotFound(msg)

    def _resolve_mecef_type(
        self,
        doc_type: DocumentType,
        requested: MecefType | None,
    ) -> MecefType | None:
        if not requires_certification(doc_type):
            if requested is not None:
                msg = f"Un document {doc_type} n'est pas certifié MECeF"
                raise InvalidState(msg)
            return None
        if requested is None:
            return default_mecef_type(doc_type)
        if not mecef_type_allowed(doc_type, requested):
            msg = f"Type MECeF {requested} incompatible avec un document {doc_type}"
            raise InvalidState(msg)
        return requested

    def _get_original(self, company_id: str, original_id: str | None) -> Invoice:
        """Facture d'origine d'un avoir : émise, de type facture, même société."""
        if original_id is None:
            msg = "Un avoir doit référencer sa facture d'origine"
            raise InvalidCreditNote(msg)
        try:
            original = self.store.get_invoice(original_id)
        except NotFound as exc:
            msg = f"Facture d'origine introuvable : {original_id}"
            raise InvalidCreditNote(msg) from exc
        if original.company_id != company_id or original.type != DocumentType.INVOICE:
            msg = f"Le document {original_id} n'est pas une facture de la société"
            raise InvalidCreditNote(msg)
        if original.status not in _ISSUED_STATUSES:
            msg = f"La facture d'origine {original_id} n'est pas émise ({original.status})"
            raise InvalidCreditNote(msg)
        return original

    def _check_issuable(self, invoice: Invoice) -> Invoice | None:
        """Contrôles avant émission ; retourne la facture d'origine d'un avoir."""
        if not invoice.lines:
            msg = "Le document doit contenir au moins une ligne"
            raise InvalidLineInput(msg, field="lines")
        if invoice.type != DocumentType.CREDIT_NOTE:
            return None
        original = self._get_original(invoice.company_id, invoice.original_invoice_id)
        self._check_credit_cap(invoice, original.id)
        return original

    def _check_credit_cap(self, credit_note: Invoice, original_id: str) -> None:
        """Le total des avoirs émis ne dépasse pas le TTC de la facture."""
        original = self.store.get_invoice(original_id)
        already_credited = Money.total(
            Money(note.total_ttc)
            for note in self.store.list_credit_notes(original_id)
            if note.id != credit_note.id and note.status in _ISSUED_STATUSES
        )
        creditable = Money(original.total_ttc) - already_credited
        if Money(credit_note.total_ttc) > creditable:
            msg = (
                f"L'avoir ({credit_note.total_ttc}) dépasse le montant encore "
                f"créditable ({creditable}) de la facture {original.number}"
            )
            raise InvalidCreditNote(msg)

    def _certify_if_required(
        self,
        invoice: Invoice,
        company: Company,
        original: Invoice | None,
    ) -> CertificationResult | None:
        if not requires_certification(invoice.type):
            return None
        if not company.ifu:
            msg = f"IFU manquant pour la société {company.name}"
            logger.warning("Certification impossible : %s", msg)
            raise CertificationFailure(msg)

        client = self.store.get_client(invoice.client_id)
        request = CertificationRequest(
            company_ifu=company.ifu,
            client_ifu=client.ifu,
            client_name=client.name,
            items=[
                CertificationItem(
                    name=line.description,
                    quantity=line.quantity,
                    unit_price=line.unit_price_ht,
                    tva_group=line.tva_group,
                )
                for line in invoice.lines
            ],
            total_amount=invoice.total_ttc,
            type=invoice.mecef_type or default_mecef_type(invoice.type),
            original_invoice_ref=original.number if original else None,
            operator_name=self.settings.operator_name,
        )
        return self._certify(invoice, request)

    def _certify(self, invoice: Invoice, request: CertificationRequest) -> CertificationResult:
        timeout = self.settings.certification_timeout
        try:
            return asyncio.run(
                asyncio.wait_for(self.certifier.certify(request), timeout=timeout)
            )
        except CertificationFailure as exc:
            logger.warning("Certification refusée pour %s : %s", invoice.id, exc.reason)
            raise
        except TimeoutError as exc:
            msg = f"Délai de certification dépassé ({timeout} s)"
            logger.warning("Certification impossible pour %s : %s", invoice.id, msg)
            raise CertificationFailure(msg) from exc
        except OSError as exc:
            msg = f"Dispositif MECeF injoignable : {exc}"
            logger.warning("Certification impossible pour %s : %s", invoice.id, msg)
            raise CertificationFailure(msg) from exc

    def _issued(
        self,
        invoice: Invoice,
        company: Company,
        number: str,
        certification: CertificationResult | None,
    ) -> Invoice:
        now = self._now()
        update: dict[str, Any] = {
            "status": InvoiceStatus.SENT,
            "series": company.series_for(invoice.type),
            "number": number,
            "sent_at": now,
            "updated_at": now,
        }
        if certification is not None:
            update |= {
                "mecef_nim": certification.nim,
                "mecef_counters": certification.counters,
                "mecef_dtc": certification.dtc,
                "mecef_qr_code": certification.qr_code,
                "mecef_signature": certification.signature,
                "mecef_type": certification.type,
                "mecef_status": MecefStatus.CERTIFIED,
            }
        return invoice.model_copy(update=update)

    def _answer_quote(
        self,
        quote_id: str,
        target: InvoiceStatus,
        user_id: str | None,
    ) -> Invoice:
        with self.store.atomic():
            quote = self.store.get_invoice(quote_id, for_update=True)
            if quote.type not in QUOTE_FAMILY:
                msg = f"Ce document n'est pas un devis ({quote.type})"
                raise InvalidState(msg)
            if effective_status(quote, self._today()) == InvoiceStatus.EXPIRED:
                msg = f"Le devis {quote.number} a expiré le {quote.due_date}"
                raise InvalidState(msg)
            ensure_transition(quote.type, quote.status, target)
            stored = self.store.update_invoice(
                quote.model_copy(update={"status": target, "updated_at": self._now()})
            )
            self._audit(AuditAction.UPDATE, stored, user_id=user_id, old=quote, new=stored)
        logger.info("Devis %s : %s", quote.number, target)
        return stored

    def _ensure_no_payment(self, invoice: Invoice) -> None:
        if self.store.list_payments(invoice.id):
            msg = f"Le document {invoice.id} a des règlements enregistrés"
            raise InvalidState(msg)

    def _audit(
        self,
        action: AuditAction,
        invoice: Invoice,
        *,
        user_id: str | None = None,
        old: Invoice | None = None,
        new: Invoice | None = None,
    ) -> None:
        self.store.record_audit(
            AuditEntry(
                company_id=invoice.company_id,
                action=action,
                entity_type=AuditEntity.INVOICE,
                entity_id=invoice.id,
                user_id=user_id,
                old_values=_audit_values(old) if old is not None else None,
                new_values=_audit_values(new) if new is not None else None,
                created_at=self._now(),
            )
        )
