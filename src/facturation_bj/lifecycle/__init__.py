"""Gestion du cycle de vie des documents commerciaux.

FR: Machine à états (factures, avoirs, devis) et service d'orchestration
    de l'émission certifiée MECeF.
EN: State machine (invoices, credit notes, quotes) and orchestration
    service for MECeF-certified issuing.
"""

from facturation_bj.lifecycle.manager import (
    INVOICE_TRANSITIONS,
    QUOTE_TRANSITIONS,
    STATUS_LABELS,
    can_transition,
    effective_status,
    ensure_transition,
    requires_certification,
    status_after_payment,
    status_label,
    transitions_for,
)
from facturation_bj.lifecycle.service import InvoiceService

__all__ = [
    "INVOICE_TRANSITIONS",
    "InvoiceService",
    "QUOTE_TRANSITIONS",
    "STATUS_LABELS",
    "can_transition",
    "effective_status",
    "ensure_transition",
    "requires_certification",
    "status_after_payment",
    "status_label",
    "transitions_for",
]
