"""Configuration de la facturation via settings Django.

FR: Helper pour accéder aux paramètres FACTURATION_BJ définis dans
    settings.py. Fournit des valeurs par défaut, un instanciateur dynamique
    du connecteur MECeF et la construction du service de facturation.
EN: Helper for accessing FACTURATION_BJ settings defined in settings.py.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from facturation_bj.certification.base import BaseCertifier
from facturation_bj.config import InvoicingSettings
from facturation_bj.lifecycle.service import InvoiceService

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, object] = {
    "CERTIFIER_CLASS": None,
    "CERTIFIER_TOKEN": "",
    "CERTIFIER_ENVIRONMENT": "sandbox",
    "CERTIFIER_API_URL": None,
    "CERTIFICATION_TIMEOUT": 10.0,
    "MAX_ALLOCATION_ATTEMPTS": 5,
    "PAYMENT_TERMS_DAYS": 30,
    "OPERATOR_NAME": "System",
    "BUSINESS_TIMEZONE": "Africa/Porto-Novo",
}


def get_setting(name: str) -> object:
    """Retourne la valeur d'un paramètre FACTURATION_BJ.

    FR: Cherche dans settings.FACTURATION_BJ[name], puis dans les défauts.
    EN: Looks up settings.FACTURATION_BJ[name], then falls back to defaults.
    """
    if name not in DEFAULTS:
        msg = f"Paramètre FACTURATION_BJ inconnu : {name}"
        raise KeyError(msg)
    user_settings = getattr(settings, "FACTURATION_BJ", {})
    return user_settings.get(name, DEFAULTS[name])


def get_certifier_instance() -> BaseCertifier:
    """Instancie dynamiquement le connecteur MECeF configuré.

    FR: Utilise CERTIFIER_CLASS, CERTIFIER_TOKEN, CERTIFIER_ENVIRONMENT et
        CERTIFIER_API_URL pour créer une instance du connecteur.
    EN: Uses CERTIFIER_CLASS, CERTIFIER_TOKEN, CERTIFIER_ENVIRONMENT and
        CERTIFIER_API_URL to create a certifier instance.

    Raises:
        ValueError: Si CERTIFIER_CLASS n'est pas configuré.
    """
    certifier_class_path = get_setting("CERTIFIER_CLASS")
    if not certifier_class_path:
        msg = (
            "FACTURATION_BJ['CERTIFIER_CLASS'] n'est pas configuré. "
            "Spécifiez le chemin complet de la classe du connecteur MECeF."
        )
        raise ValueError(msg)

    certifier_class = import_string(certifier_class_path)
    return certifier_class(
        token=get_setting("CERTIFIER_TOKEN"),
        environment=get_setting("CERTIFIER_ENVIRONMENT"),
        api_url=get_setting("CERTIFIER_API_URL"),
    )


def get_invoicing_settings() -> InvoicingSettings:
    """Construit les paramètres du service depuis FACTURATION_BJ."""
    return InvoicingSettings(
        certification_timeout=get_setting("CERTIFICATION_TIMEOUT"),
        max_allocation_attempts=get_setting("MAX_ALLOCATION_ATTEMPTS"),
        default_payment_terms_days=get_setting("PAYMENT_TERMS_DAYS"),
        operator_name=get_setting("OPERATOR_NAME"),
        business_timezone=get_setting("BUSINESS_TIMEZONE"),
    )


def get_invoice_service() -> InvoiceService:
    """Service de facturation branché sur le stockage Django."""
    from facturation_bj.contrib.django.store import DjangoInvoiceStore

    return InvoiceService(
        store=DjangoInvoiceStore(),
        certifier=get_certifier_instance(),
        settings=get_invoicing_settings(),
    )
