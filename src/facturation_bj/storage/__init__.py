"""Stockage transactionnel des documents.

FR: Interface abstraite consommée par le service et modèles de recherche.
EN: Abstract interface consumed by the service and search models.
"""

from facturation_bj.storage.base import BaseInvoiceStore
from facturation_bj.storage.models import (
    InvoiceSearchFilters,
    InvoiceSearchResponse,
    InvoiceSummary,
)

__all__ = [
    "BaseInvoiceStore",
    "InvoiceSearchFilters",
    "InvoiceSearchResponse",
    "InvoiceSummary",
]
