"""Modèles de données Pydantic pour la facturation."""

from facturation_bj.models.audit import AuditEntity, AuditEntry
from facturation_bj.models.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceLine,
    InvoiceLineInput,
    InvoiceUpdate,
)
from facturation_bj.models.party import Client, Company
from facturation_bj.models.payment import Payment, PaymentInput

__all__ = [
    "AuditEntity",
    "AuditEntry",
    "Client",
    "Company",
    "Invoice",
    "InvoiceDraft",
    "InvoiceLine",
    "InvoiceLineInput",
    "InvoiceUpdate",
    "Payment",
    "PaymentInput",
]
