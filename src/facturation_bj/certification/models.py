"""Modèles de données pour les échanges avec le dispositif MECeF.

FR: Requête de normalisation d'une facture et réponse du dispositif
    (NIM, compteurs, date-heure, QR code, signature). La réponse devient
    partie intégrante de l'enregistrement légal de la facture.
EN: Invoice normalization request and device response. The response
    becomes part of the invoice's permanent legal record.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from facturation_bj.models.enums import MecefType, TvaGroup


class CertificationItem(BaseModel):
    """Article transmis au dispositif."""

    name: str = Field(..., min_length=1, description="Désignation / Item name")
    quantity: Decimal = Field(..., gt=0, description="Quantité / Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Prix unitaire HT / Unit price")
    tva_group: TvaGroup = Field(..., description="Groupe de taxation / Tax group")


class CertificationRequest(BaseModel):
    """Demande de certification d'une facture ou d'un avoir.

    FR: ``original_invoice_ref`` porte le numéro de la facture d'origine
        pour les avoirs (FA, EA).
    EN: ``original_invoice_ref`` carries the original invoice number for
        credit notes.
    """

    company_ifu: str = Field(..., pattern=r"^\d{13}$", description="IFU vendeur / Seller IFU")
    client_ifu: str | None = Field(default=None, description="IFU acheteur / Buyer IFU")
    client_name: str | None = Field(default=None, description="Nom du client / Client name")
    items: list[CertificationItem] = Field(..., min_length=1, description="Articles / Items")
    total_amount: Decimal = Field(..., ge=0, description="Total TTC / Total incl. tax")
    type: MecefType = Field(..., description="Type de facture normalisée / Invoice type")
    original_invoice_ref: str | None = Field(
        default=None,
        description="Référence de la facture d'origine / Original invoice reference",
    )
    operator_name: str = Field(default="System", description="Opérateur / Operator")


class CertificationResult(BaseModel):
    """Réponse du dispositif MECeF.

    FR: Tous les champs sont obligatoires et non vides.
    EN: All fields are required and non-empty.
    """

    nim: str = Field(..., min_length=1, description="Numéro d'identification machine / NIM")
    counters: str = Field(..., min_length=1, description="Compteurs / Counters")
    dtc: str = Field(..., min_length=1, description="Date-heure de certification / Timestamp")
    qr_code: str = Field(..., min_length=1, description="Contenu du QR code / QR payload")
    signature: str = Field(..., min_length=1, description="Signature / Signature")
    type: MecefType = Field(..., description="Type de facture normalisée / Invoice type")
