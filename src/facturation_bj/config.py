"""Paramètres du service de facturation.

FR: Valeurs par défaut raisonnables ; l'intégration Django les lit depuis
    ``settings.FACTURATION_BJ`` (voir ``contrib.django.conf``).
EN: Sensible defaults; the Django integration reads them from
    ``settings.FACTURATION_BJ``.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class InvoicingSettings(BaseModel):
    """Paramètres du cycle de vie des factures."""

    certification_timeout: float = Field(
        default=10.0,
        gt=0,
        description=(
            "Délai maximal d'attente du dispositif MECeF en secondes / "
            "Certification timeout in seconds"
        ),
    )
    max_allocation_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description=(
            "Nombre de tentatives d'attribution de numéro / "
            "Number allocation attempts"
        ),
    )
    default_payment_terms_days: int = Field(
        default=30,
        ge=0,
        description=(
            "Délai de paiement des factures issues d'un devis (jours) / "
            "Payment terms for invoices converted from quotes"
        ),
    )
    operator_name: str = Field(
        default="System",
        min_length=1,
        description="Opérateur transmis au dispositif MECeF / Operator name",
    )
    business_timezone: str = Field(
        default="Africa/Porto-Novo",
        description=(
            "Fuseau horaire de l'entreprise (date du jour, année de "
            "numérotation) / Business time zone"
        ),
    )

    @field_validator("business_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Fuseau horaire inconnu : {value}"
            raise ValueError(msg) from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)
