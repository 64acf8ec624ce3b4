"""Configuration de l'application Django pour la facturation MECeF."""

from django.apps import AppConfig


class FacturationBjConfig(AppConfig):
    """Configuration de l'app Django facturation-bj."""

    name = "facturation_bj.contrib.django"
    label = "facturation_bj"
    verbose_name = "Facturation certifiée MECeF"
    default_auto_field = "django.db.models.BigAutoField"
