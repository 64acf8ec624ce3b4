"""Configuration pytest pour les tests Django.

FR: Configure Django avec SQLite in-memory pour les tests. Les tables de
    l'application sont créées par pytest-django (pas de migrations).
EN: Configures Django with in-memory SQLite for tests.
"""

import django
from django.conf import settings


def pytest_configure() -> None:
    """Configure Django pour les tests."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                },
            },
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.admin",
                "facturation_bj.contrib.django",
            ],
            ROOT_URLCONF="facturation_bj.contrib.django.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            FACTURATION_BJ={
                "CERTIFIER_CLASS": (
                    "facturation_bj.certification.connectors.simulated.SimulatedCertifier"
                ),
            },
        )
        django.setup()


import pytest  # noqa: E402

from facturation_bj.lifecycle.service import InvoiceService  # noqa: E402


@pytest.fixture
def company_row(db):
    """Fixture : société émettrice enregistrée en base."""
    from facturation_bj.contrib.django.models import Company

    return Company.objects.create(name="Bénin Services SARL", ifu="3201900123456")


@pytest.fixture
def client_row(company_row):
    """Fixture : client de la société enregistré en base."""
    from facturation_bj.contrib.django.models import Client

    return Client.objects.create(
        company=company_row,
        name="Société Atlantique",
        ifu="0202212345678",
        email="compta@atlantique.bj",
    )


@pytest.fixture
def db_customer(client_row):
    """Fixture : client au format Pydantic, pour les brouillons."""
    return client_row.to_pydantic()


@pytest.fixture
def db_store(db):
    # Import différé : les modèles exigent Django configuré.
    from facturation_bj.contrib.django.store import DjangoInvoiceStore

    return DjangoInvoiceStore()


@pytest.fixture
def db_service(db_store, certifier, clock) -> InvoiceService:
    """Fixture : service branché sur l'ORM, horloge fixe."""
    return InvoiceService(db_store, certifier, clock=clock)


@pytest.fixture
def use_db_service(monkeypatch, db_service) -> InvoiceService:
    """Fixture : remplace le service construit depuis les settings."""
    monkeypatch.setattr(
        "facturation_bj.contrib.django.conf.get_invoice_service", lambda: db_service
    )
    monkeypatch.setattr(
        "facturation_bj.contrib.django.views.get_invoice_service", lambda: db_service
    )
    return db_service
