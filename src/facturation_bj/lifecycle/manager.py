"""Machine à états du cycle de vie des documents commerciaux.

FR: Deux graphes de transitions : la famille « facture » (factures et
    avoirs, certifiés MECeF à l'émission) et la famille « devis » (devis et
    bons de commande). Les statuts OVERDUE et EXPIRED ne sont jamais
    enregistrés : ils sont calculés à la lecture à partir de l'échéance.
EN: Two transition graphs: the invoice family (invoices and credit notes,
    MECeF certified on issue) and the quote family (quotes and orders).
    OVERDUE and EXPIRED are never stored: they are derived at read time.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from facturation_bj.errors import InvalidState
from facturation_bj.models.enums import DocumentType, InvoiceStatus, MecefType
from facturation_bj.models.invoice import Invoice
from facturation_bj.storage.models import InvoiceSummary

# ---------------------------------------------------------------------------
# Graphes de transitions autorisées
# ---------------------------------------------------------------------------

INVOICE_TRANSITIONS: dict[InvoiceStatus, list[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: [
        InvoiceStatus.SENT,
        InvoiceStatus.CANCELLED,
    ],
    InvoiceStatus.SENT: [
        InvoiceStatus.PARTIALLY_PAID,
        InvoiceStatus.PAID,
    ],
    InvoiceStatus.PARTIALLY_PAID: [
        InvoiceStatus.PARTIALLY_PAID,
        InvoiceStatus.PAID,
    ],
    # Terminaux
    InvoiceStatus.PAID: [],
    InvoiceStatus.CANCELLED: [],
}

QUOTE_TRANSITIONS: dict[InvoiceStatus, list[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: [
        InvoiceStatus.SENT,
        InvoiceStatus.CANCELLED,
    ],
    InvoiceStatus.SENT: [
        InvoiceStatus.ACCEPTED,
        InvoiceStatus.REJECTED,
    ],
    # Terminaux
    InvoiceStatus.ACCEPTED: [],
    InvoiceStatus.REJECTED: [],
    InvoiceStatus.CANCELLED: [],
}

INVOICE_FAMILY: frozenset[DocumentType] = frozenset(
    {DocumentType.INVOICE, DocumentType.CREDIT_NOTE}
)
QUOTE_FAMILY: frozenset[DocumentType] = frozenset({DocumentType.QUOTE, DocumentType.ORDER})

# ---------------------------------------------------------------------------
# Libellés des statuts
# ---------------------------------------------------------------------------

STATUS_LABELS: dict[InvoiceStatus, str] = {
    InvoiceStatus.DRAFT: "Brouillon",
    InvoiceStatus.SENT: "Émise",
    InvoiceStatus.PARTIALLY_PAID: "Partiellement payée",
    InvoiceStatus.PAID: "Payée",
    InvoiceStatus.OVERDUE: "En retard",
    InvoiceStatus.CANCELLED: "Annulée",
    InvoiceStatus.ACCEPTED: "Accepté",
    InvoiceStatus.REJECTED: "Refusé",
    InvoiceStatus.EXPIRED: "Expiré",
}


def status_label(status: InvoiceStatus) -> str:
    """Libellé français affiché pour un statut."""
    return STATUS_LABELS[status]


def transitions_for(doc_type: DocumentType) -> dict[InvoiceStatus, list[InvoiceStatus]]:
    """Retourne le graphe de transitions d'un type de document."""
    if doc_type in INVOICE_FAMILY:
        return INVOICE_TRANSITIONS
    return QUOTE_TRANSITIONS


def can_transition(
    doc_type: DocumentType,
    current: InvoiceStatus,
    target: InvoiceStatus,
) -> bool:
    """Vérifie si la transition vers le statut cible est autorisée."""
    return target in transitions_for(doc_type).get(current, [])


def ensure_transition(
    doc_type: DocumentType,
    current: InvoiceStatus,
    target: InvoiceStatus,
) -> None:
    """Valide une transition.

    Raises:
        InvalidState: Si la transition n'est pas dans le graphe du type.
    """
    if not can_transition(doc_type, current, target):
        allowed = [s.value for s in transitions_for(doc_type).get(current, [])]
        msg = (
            f"Transition non autorisée : {current.value} → {target.value}. "
            f"Transitions possibles : {allowed}"
        )
        raise InvalidState(msg)


def effective_status(invoice: Invoice | InvoiceSummary, today: date) -> InvoiceStatus:
    """Statut visible d'un document à une date donnée.

    FR: OVERDUE pour une facture émise ou partiellement payée dont
        l'échéance est dépassée et le solde non nul ; EXPIRED pour un devis
        émis dont la validité est dépassée. Sinon le statut enregistré.
    EN: OVERDUE for a sent or partially paid invoice past due with a
        balance; EXPIRED for a sent quote past validity. Otherwise the
        stored status.
    """
    if invoice.due_date is None or invoice.due_date >= today:
        return invoice.status
    if invoice.type in INVOICE_FAMILY:
        if (
            invoice.status in (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)
            and invoice.amount_paid < invoice.total_ttc
        ):
            return InvoiceStatus.OVERDUE
    elif invoice.status == InvoiceStatus.SENT:
        return InvoiceStatus.EXPIRED
    return invoice.status


def status_after_payment(total_ttc: Decimal, amount_paid: Decimal) -> InvoiceStatus:
    """Statut d'une facture émise après un règlement."""
    if amount_paid >= total_ttc:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


def requires_certification(doc_type: DocumentType) -> bool:
    """Les factures et avoirs sont certifiés MECeF à l'émission."""
    return doc_type in INVOICE_FAMILY


def default_mecef_type(doc_type: DocumentType) -> MecefType | None:
    """Type MECeF par défaut : FV pour une facture, FA pour un avoir."""
    if doc_type == DocumentType.INVOICE:
        return MecefType.FV
    if doc_type == DocumentType.CREDIT_NOTE:
        return MecefType.FA
    return None


def mecef_type_allowed(doc_type: DocumentType, mecef_type: MecefType) -> bool:
    """Vérifie la cohérence du type MECeF avec le type de document."""
    if doc_type == DocumentType.INVOICE:
        return mecef_type in (MecefType.FV, MecefType.EV)
    if doc_type == DocumentType.CREDIT_NOTE:
        return mecef_type in (MecefType.FA, MecefType.EA)
    return False
