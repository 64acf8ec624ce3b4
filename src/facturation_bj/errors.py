"""Hiérarchie d'exceptions du cœur de facturation.

FR: Exceptions typées pour les montants invalides, les lignes mal formées,
    les conflits de numérotation, les échecs de certification MECeF, les
    transitions d'état interdites et les ressources introuvables.
    Aucune n'hérite de ValueError : les validateurs Pydantic les laissent
    remonter telles quelles.
EN: Typed exceptions for invalid amounts, malformed lines, numbering
    conflicts, MECeF certification failures, forbidden state transitions
    and missing resources.
"""


class FacturationError(Exception):
    """Erreur de base pour toutes les opérations de facturation.

    FR: Classe parente de toutes les exceptions du cœur de facturation.
    EN: Base class for all invoicing core exceptions.
    """


class InvalidAmount(FacturationError):
    """Montant monétaire invalide.

    FR: Valeur non décimale, flottante, infinie, ou négative dans un
        contexte qui exige un montant positif ou nul.
    EN: Non-decimal, float, infinite, or negative value where a
        non-negative amount is required.
    """


class PaymentExceedsBalance(InvalidAmount):
    """Paiement supérieur au solde restant dû.

    FR: Le cumul des paiements ne peut jamais dépasser le total TTC.
    EN: The sum of payments can never exceed the invoice total.
    """

    def __init__(self, message: str, remaining: object = None) -> None:
        super().__init__(message)
        self.remaining = remaining


class InvalidLineInput(FacturationError):
    """Ligne de facture mal formée.

    FR: Quantité, prix unitaire, remise ou taux de TVA hors bornes.
        Le champ fautif (et la position de la ligne si connue) est
        conservé pour être renvoyé à l'appelant.
    EN: Quantity, unit price, discount or VAT rate out of bounds.
        The offending field (and line position if known) is kept.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.position = position


class InvalidDates(FacturationError):
    """Dates de document incohérentes.

    FR: Échéance antérieure à la date d'émission, une fois la date
        d'émission par défaut appliquée.
    EN: Due date before the issue date, once the default issue date applies.
    """


class AllocationConflict(FacturationError):
    """Conflit de numérotation persistant après plusieurs tentatives.

    FR: Des finalisations concurrentes ont épuisé le nombre de tentatives
        d'attribution. L'appelant peut relancer l'opération complète.
    EN: Concurrent finalizations exhausted the allocation retries.
        The caller may retry the whole operation.
    """


class DuplicateNumberError(FacturationError):
    """Violation de la contrainte d'unicité (société, série, numéro).

    FR: Levée par le stockage ; consommée par l'allocateur qui relance
        l'attribution avec un maximum relu.
    EN: Raised by the store; consumed by the allocator, which retries
        with a freshly read maximum.
    """


class CertificationFailure(FacturationError):
    """Échec de certification par le dispositif MECeF.

    FR: Rejet, indisponibilité ou délai dépassé. La facture reste en
        brouillon avec le statut MECeF PENDING.
    EN: Rejection, unavailability or timeout. The invoice stays DRAFT
        with MECeF status PENDING.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidState(FacturationError):
    """Opération interdite dans le statut courant du document.

    FR: Modification d'une facture émise, suppression d'une facture payée,
        double finalisation, etc.
    EN: Editing a sent invoice, deleting a paid invoice, finalizing twice, etc.
    """


class InvalidCreditNote(InvalidState):
    """Avoir incohérent avec sa facture d'origine.

    FR: Référence manquante, facture d'origine non émise ou d'une autre
        société, ou montant supérieur au solde encore créditable.
    EN: Missing reference, original not issued or from another company,
        or amount above the remaining creditable balance.
    """


class NotFound(FacturationError):
    """Facture, client ou société introuvable.

    FR: La ressource référencée n'existe pas dans le stockage.
    EN: The referenced resource does not exist in the store.
    """


class InternalError(FacturationError):
    """Erreur inattendue du stockage ou d'un collaborateur.

    FR: Remontée sans tentative de reprise ; la cause est chaînée.
    EN: Surfaced without recovery attempt; the cause is chained.
    """
