"""Sérialiseurs légers pour la facturation certifiée.

FR: Fonctions de sérialisation des modèles de la lib vers des dict
    JSON-safe, sans dépendance à Django REST Framework. Les montants sont
    rendus en chaînes décimales.
EN: Lightweight serialization functions from library models to JSON-safe
    dicts, without DRF dependency. Amounts are rendered as decimal strings.
"""

from __future__ import annotations

from facturation_bj.lifecycle.manager import status_label
from facturation_bj.models.enums import InvoiceStatus
from facturation_bj.models.invoice import Invoice
from facturation_bj.models.payment import Payment
from facturation_bj.storage.models import InvoiceSearchResponse


def invoice_to_dict(invoice: Invoice, effective_status: InvoiceStatus | None = None) -> dict:
    """Sérialise un document en dict JSON-safe.

    FR: ``effective_status`` est le statut visible (OVERDUE, EXPIRED) ;
        le statut enregistré reste dans ``status``. ``status_label`` est
        le libellé du statut visible.
    EN: ``effective_status`` is the visible status; ``status`` keeps the
        stored one. ``status_label`` labels the visible status.
    """
    visible = effective_status or invoice.status
    data = invoice.model_dump(mode="json")
    data["effective_status"] = str(visible)
    data["status_label"] = status_label(visible)
    return data


def payment_to_dict(payment: Payment) -> dict:
    """Sérialise un règlement en dict JSON-safe."""
    return payment.model_dump(mode="json")


def search_response_to_dict(response: InvoiceSearchResponse) -> dict:
    """Sérialise une page de résultats de recherche."""
    data = response.model_dump(mode="json")
    for row, summary in zip(data["results"], response.results):
        row["status_label"] = status_label(summary.status)
    return data
