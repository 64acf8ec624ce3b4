"""Modèles de recherche de documents.

FR: Filtres, résumé et réponse paginée de la recherche de factures.
EN: Filters, summary and paginated response of the invoice search.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from facturation_bj.models.enums import DocumentType, InvoiceStatus, MecefStatus


class InvoiceSearchFilters(BaseModel):
    """Filtres de recherche de documents.

    FR: Avec ``as_of``, les statuts filtrés sont les statuts visibles à
        cette date (OVERDUE et EXPIRED calculés, SENT excluant les
        documents échus) ; sans ``as_of``, les statuts enregistrés.
        ``search`` porte sur le numéro ou le nom du client (sans casse).
    EN: With ``as_of``, statuses are the statuses visible on that date;
        without it, stored statuses. ``search`` matches the number or
        client name.
    """

    company_id: str | None = None
    statuses: list[InvoiceStatus] | None = None
    type: DocumentType | None = None
    types: list[DocumentType] | None = None
    client_id: str | None = None
    search: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    due_before: date | None = None
    """Échéance strictement antérieure à cette date."""
    as_of: date | None = None
    """Date d'évaluation des statuts calculés."""
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=500)


class InvoiceSummary(BaseModel):
    """Résumé d'un document retourné par la recherche."""

    id: str
    number: str | None
    type: DocumentType
    status: InvoiceStatus
    client_id: str
    client_name: str
    issue_date: date
    due_date: date | None
    total_ttc: Decimal
    amount_paid: Decimal
    mecef_status: MecefStatus


class InvoiceSearchResponse(BaseModel):
    """Réponse paginée de recherche de documents.

    FR: Résultats triés par date d'émission décroissante.
    EN: Results ordered by issue date, newest first.
    """

    results: list[InvoiceSummary]
    total_count: int
    page: int
    page_size: int
