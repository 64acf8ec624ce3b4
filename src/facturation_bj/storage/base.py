"""Interface abstraite pour le stockage transactionnel des documents.

FR: Le cœur de facturation consomme la persistance à travers cette
    interface. Les implémentations garantissent l'unicité de
    (société, série, numéro) et lèvent DuplicateNumberError en cas de
    violation, que l'allocateur de numéros consomme pour relancer.
EN: The invoicing core consumes persistence through this interface.
    Implementations enforce (company, series, number) uniqueness and raise
    DuplicateNumberError on violation.
"""

from abc import ABCMeta, abstractmethod
from contextlib import AbstractContextManager

from facturation_bj.models.audit import AuditEntry
from facturation_bj.models.invoice import Invoice
from facturation_bj.models.party import Client, Company
from facturation_bj.models.payment import Payment
from facturation_bj.storage.models import InvoiceSearchFilters, InvoiceSearchResponse


class BaseInvoiceStore(metaclass=ABCMeta):
    """Classe de base abstraite pour les stockages de documents.

    FR: Toutes les écritures d'une opération du service ont lieu dans un
        même bloc ``atomic()`` : tout ou rien. Les blocs imbriqués se
        comportent comme des points de sauvegarde.
    EN: All writes of a service operation happen inside one ``atomic()``
        block. Nested blocks behave like savepoints.
    """

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Ouvre une transaction (ou un point de sauvegarde si imbriquée)."""
        ...

    # --- Référentiel ---

    @abstractmethod
    def get_company(self, company_id: str) -> Company:
        """Retourne la société.

        Raises:
            NotFound: Si la société n'existe pas.
        """
        ...

    @abstractmethod
    def get_client(self, client_id: str) -> Client:
        """Retourne le client.

        Raises:
            NotFound: Si le client n'existe pas.
        """
        ...

    # --- Documents ---

    @abstractmethod
    def get_invoice(self, invoice_id: str, for_update: bool = False) -> Invoice:
        """Retourne un document.

        Args:
            invoice_id: Identifiant du document.
            for_update: Verrouille la ligne jusqu'à la fin de la transaction.

        Raises:
            NotFound: Si le document n'existe pas.
        """
        ...

    @abstractmethod
    def add_invoice(self, invoice: Invoice) -> Invoice:
        """Insère un document et ses lignes.

        Raises:
            DuplicateNumberError: Numéro déjà attribué dans la série.
        """
        ...

    @abstractmethod
    def update_invoice(self, invoice: Invoice) -> Invoice:
        """Enregistre un document existant (lignes comprises).

        Raises:
            NotFound: Si le document n'existe pas.
            DuplicateNumberError: Numéro déjà attribué dans la série.
        """
        ...

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> None:
        """Supprime un document et ses lignes.

        Raises:
            NotFound: Si le document n'existe pas.
        """
        ...

    @abstractmethod
    def max_ordinal(self, company_id: str, series: str, year: int) -> int:
        """Plus grand ordinal attribué dans (société, série, année), 0 si aucun."""
        ...

    @abstractmethod
    def list_credit_notes(self, original_invoice_id: str) -> list[Invoice]:
        """Avoirs rattachés à une facture d'origine."""
        ...

    @abstractmethod
    def search_invoices(self, filters: InvoiceSearchFilters) -> InvoiceSearchResponse:
        """Recherche paginée, triée par date d'émission décroissante."""
        ...

    # --- Règlements ---

    @abstractmethod
    def add_payment(self, payment: Payment) -> Payment:
        """Enregistre un règlement."""
        ...

    @abstractmethod
    def list_payments(self, invoice_id: str) -> list[Payment]:
        """Règlements d'un document, du plus ancien au plus récent."""
        ...

    # --- Audit ---

    @abstractmethod
    def record_audit(self, entry: AuditEntry) -> None:
        """Ajoute une entrée au journal d'audit."""
        ...

    @abstractmethod
    def list_audit(self, entity_id: str) -> list[AuditEntry]:
        """Entrées d'audit d'une entité, dans l'ordre d'écriture."""
        ...
