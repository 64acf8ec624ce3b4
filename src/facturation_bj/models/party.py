"""Modèles pour la société émettrice et ses clients.

FR: La société porte l'IFU vendeur transmis au dispositif MECeF et les
    préfixes de séries de numérotation ; le client porte l'IFU acheteur
    (facultatif pour les particuliers).
EN: The company carries the seller IFU sent to the MECeF device and the
    numbering series prefixes; the client carries the optional buyer IFU.
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from facturation_bj.models.enums import DocumentType


class Company(BaseModel):
    """Société émettrice.

    FR: Les avoirs partagent la série des factures, les devis et bons de
        commande ont leur propre série.
    EN: Credit notes share the invoice series; quotes and orders have
        their own series.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Identifiant de la société / Company ID",
    )
    name: str = Field(..., min_length=1, description="Raison sociale / Legal name")
    ifu: str | None = Field(
        default=None,
        pattern=r"^\d{13}$",
        description="Identifiant fiscal unique (13 chiffres) / Tax ID",
    )
    invoice_prefix: str = Field(
        default="FAC",
        min_length=1,
        max_length=10,
        description="Préfixe des factures et avoirs / Invoice series prefix",
    )
    quote_prefix: str = Field(
        default="DEV",
        min_length=1,
        max_length=10,
        description="Préfixe des devis / Quote series prefix",
    )
    order_prefix: str = Field(
        default="BC",
        min_length=1,
        max_length=10,
        description="Préfixe des bons de commande / Order series prefix",
    )

    def series_for(self, doc_type: DocumentType) -> str:
        """Retourne la série de numérotation d'un type de document."""
        if doc_type == DocumentType.QUOTE:
            return self.quote_prefix
        if doc_type == DocumentType.ORDER:
            return self.order_prefix
        return self.invoice_prefix


class Client(BaseModel):
    """Client de la société."""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Identifiant du client / Client ID",
    )
    company_id: str = Field(..., description="Société propriétaire / Owner company")
    name: str = Field(..., min_length=1, description="Nom ou raison sociale / Name")
    ifu: str | None = Field(
        default=None,
        pattern=r"^\d{13}$",
        description="IFU acheteur (13 chiffres) / Buyer tax ID",
    )
    email: str | None = Field(default=None, description="Adresse email / Email")
