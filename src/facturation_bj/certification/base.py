"""Interface abstraite pour les dispositifs de certification MECeF.

FR: Définit l'interface de normalisation des factures auprès de la DGI
    (Bénin) : certification d'une facture et état du service.
EN: Defines the invoice normalization interface with the Benin tax
    authority: invoice certification and service status.
"""

from abc import ABCMeta, abstractmethod

from facturation_bj.certification.models import CertificationRequest, CertificationResult


class BaseCertifier(metaclass=ABCMeta):
    """Classe de base abstraite pour les connecteurs MECeF.

    FR: Les connecteurs concrets (API e-MECeF, dispositif simulé)
        héritent de cette classe.
    EN: Concrete connectors (e-MECeF API, simulated device) inherit
        from this class.
    """

    def __init__(
        self,
        token: str = "",
        environment: str = "sandbox",
        api_url: str | None = None,
    ) -> None:
        self.token = token
        self.environment = environment
        self.api_url = api_url

    @abstractmethod
    async def certify(self, request: CertificationRequest) -> CertificationResult:
        """Certifie une facture.

        Args:
            request: Les données de la facture à normaliser.

        Returns:
            Les identifiants de certification attribués par le dispositif.

        Raises:
            CertificationFailure: Rejet ou indisponibilité du dispositif.
            OSError: Erreur de transport (traitée comme un échec de
                certification par le service).
        """
        ...

    @abstractmethod
    async def check_status(self) -> bool:
        """Indique si le dispositif est joignable.

        Returns:
            True si le service de certification répond.
        """
        ...
