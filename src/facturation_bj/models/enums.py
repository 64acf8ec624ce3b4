"""Énumérations pour la facturation et la certification MECeF.

FR: Types de documents commerciaux, statuts du cycle de vie, groupes de
    taxation e-MECeF (DGI Bénin), modes de paiement et actions d'audit.
EN: Commercial document types, lifecycle statuses, e-MECeF tax groups
    (Benin tax authority), payment methods and audit actions.
"""

from enum import StrEnum


class DocumentType(StrEnum):
    """Type de document commercial.

    FR: Les devis et bons de commande suivent le cycle « devis »,
        les factures et avoirs le cycle « facture » (certifié MECeF).
    EN: Quotes and orders follow the quote lifecycle, invoices and
        credit notes the invoice lifecycle (MECeF certified).
    """

    QUOTE = "QUOTE"
    """Devis / Quote"""

    ORDER = "ORDER"
    """Bon de commande / Purchase order"""

    INVOICE = "INVOICE"
    """Facture / Invoice"""

    CREDIT_NOTE = "CREDIT_NOTE"
    """Avoir / Credit note"""


class InvoiceStatus(StrEnum):
    """Statut du cycle de vie d'un document.

    FR: Les statuts OVERDUE et EXPIRED sont dérivés à la lecture
        (échéance dépassée) et ne sont jamais enregistrés.
    EN: OVERDUE and EXPIRED are derived at read time (due date passed)
        and never stored.
    """

    # --- Communs ---

    DRAFT = "DRAFT"
    """Brouillon, modifiable / Draft, editable"""

    SENT = "SENT"
    """Émis (numéroté, certifié pour les factures) / Issued"""

    CANCELLED = "CANCELLED"
    """Annulé avant émission / Cancelled before issue"""

    # --- Factures et avoirs ---

    PARTIALLY_PAID = "PARTIALLY_PAID"
    """Partiellement payée / Partially paid"""

    PAID = "PAID"
    """Payée / Paid"""

    OVERDUE = "OVERDUE"
    """En retard (dérivé) / Overdue (derived)"""

    # --- Devis et bons de commande ---

    ACCEPTED = "ACCEPTED"
    """Accepté par le client / Accepted by the client"""

    REJECTED = "REJECTED"
    """Refusé par le client / Rejected by the client"""

    EXPIRED = "EXPIRED"
    """Validité dépassée (dérivé) / Validity passed (derived)"""


class MecefStatus(StrEnum):
    """Statut de certification MECeF."""

    PENDING = "PENDING"
    """Non certifiée / Not certified"""

    CERTIFIED = "CERTIFIED"
    """Certifiée par le dispositif / Certified by the device"""


class MecefType(StrEnum):
    """Type de facture normalisée e-MECeF."""

    FV = "FV"
    """Facture de vente / Sale invoice"""

    FA = "FA"
    """Facture d'avoir / Credit note"""

    EV = "EV"
    """Facture de vente à l'exportation / Export sale invoice"""

    EA = "EA"
    """Facture d'avoir à l'exportation / Export credit note"""


class TvaGroup(StrEnum):
    """Groupe de taxation e-MECeF.

    FR: Codes A à F imposés par la DGI pour chaque article certifié.
    EN: Codes A to F required by the tax authority for each item.
    """

    A = "A"
    """Exonéré / Exempt"""

    B = "B"
    """Taxable, TVA 18 % / Taxable, 18 % VAT"""

    C = "C"
    """Exportation de produits taxables / Export of taxable goods"""

    D = "D"
    """TVA régime d'exception (18 %) / Special VAT regime"""

    E = "E"
    """Régime fiscal TPS / TPS tax regime"""

    F = "F"
    """Réservé / Reserved"""


class PaymentMethod(StrEnum):
    """Mode de règlement."""

    CASH = "CASH"
    """Espèces / Cash"""

    BANK_TRANSFER = "BANK_TRANSFER"
    """Virement / Bank transfer"""

    CHECK = "CHECK"
    """Chèque / Cheque"""

    MOBILE_MONEY = "MOBILE_MONEY"
    """Mobile Money"""

    CARD = "CARD"
    """Carte bancaire / Card"""

    OTHER = "OTHER"
    """Autre / Other"""


class AuditAction(StrEnum):
    """Action enregistrée dans le journal d'audit."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    FINALIZE = "FINALIZE"
    PAYMENT = "PAYMENT"
    CANCEL = "CANCEL"
    CONVERT = "CONVERT"
