"""Configuration de l'admin Django pour la facturation certifiée.

FR: Un document émis est figé : l'admin le montre en lecture seule. Sur
    un brouillon, seuls les textes libres se modifient, et l'écriture
    passe par le service (journal d'audit).
EN: An issued document is frozen and shown read-only. On a draft only the
    free-text fields are editable, saved through the service (audit log).
"""

import logging

from django.contrib import admin, messages
from django.contrib.admin.utils import flatten_fieldsets

from facturation_bj.contrib.django.models import (
    AuditLog,
    Client,
    Company,
    Invoice,
    InvoiceLine,
    InvoiceStatusChoices,
    Payment,
)
from facturation_bj.errors import FacturationError
from facturation_bj.models.invoice import InvoiceUpdate

logger = logging.getLogger(__name__)

# Champs modifiables sur un brouillon
DRAFT_EDITABLE_FIELDS = ("notes", "legal_mentions")


def _is_draft(obj) -> bool:
    return obj is not None and obj.status == InvoiceStatusChoices.DRAFT


class InvoiceLineInline(admin.TabularInline):
    """Inline (lecture seule) pour les lignes de facture.

    FR: Les lignes se modifient via l'API, qui recalcule les totaux.
    EN: Lines are edited through the API, which recomputes totals.
    """

    model = InvoiceLine
    extra = 0
    can_delete = False
    fields = [
        "position",
        "description",
        "quantity",
        "unit_price_ht",
        "discount_percent",
        "tva_group",
        "tva_rate",
        "total_ht",
        "total_tva",
        "total_ttc",
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class PaymentInline(admin.TabularInline):
    """Inline (lecture seule) pour les règlements."""

    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = [
        "amount",
        "payment_date",
        "payment_method",
        "reference",
        "created_at",
    ]
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


class ClientInline(admin.TabularInline):
    model = Client
    extra = 0


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """Administration des sociétés émettrices."""

    list_display = ["name", "ifu", "invoice_prefix", "quote_prefix", "order_prefix"]
    search_fields = ["name", "ifu"]
    inlines = [ClientInline]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ["name", "company", "ifu", "email"]
    list_filter = ["company"]
    search_fields = ["name", "ifu", "email"]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Administration des documents commerciaux.

    FR: Tout est en lecture seule sauf les textes libres d'un brouillon ;
        l'émission passe par les actions, donc par le service.
    EN: Everything is read-only except the free text of a draft; issuing
        goes through the actions, hence through the service.
    """

    list_display = [
        "number",
        "type",
        "issue_date",
        "client",
        "total_ttc",
        "amount_paid",
        "status",
        "mecef_status",
    ]
    list_filter = ["type", "status", "mecef_status", "issue_date"]
    search_fields = ["number", "client__name"]
    inlines = [InvoiceLineInline, PaymentInline]

    fieldsets = [
        (
            "Identification",
            {
                "fields": [
                    "company",
                    "client",
                    "type",
                    "series",
                    "number",
                    "fiscal_year",
                    "ordinal",
                    "issue_date",
                    "due_date",
                    "status",
                ],
            },
        ),
        (
            "Montants",
            {
                "fields": ["total_ht", "total_tva", "total_ttc", "amount_paid"],
            },
        ),
        (
            "MECeF",
            {
                "fields": [
                    "mecef_type",
                    "mecef_status",
                    "mecef_nim",
                    "mecef_counters",
                    "mecef_dtc",
                    "mecef_signature",
                    "mecef_qr_code",
                ],
            },
        ),
        (
            "Références",
            {
                "fields": [
                    "original_invoice",
                    "notes",
                    "legal_mentions",
                    "created_by_id",
                    "sent_at",
                    "created_at",
                    "updated_at",
                ],
            },
        ),
    ]
    actions = ["finalize_invoices", "finalize_invoices_async"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        """Un document émis, annulé ou accepté ne se modifie plus."""
        if obj is not None and not _is_draft(obj):
            return False
        return super().has_change_permission(request, obj)

    def get_readonly_fields(self, request, obj=None):
        editable = DRAFT_EDITABLE_FIELDS if _is_draft(obj) else ()
        return [name for name in flatten_fieldsets(self.fieldsets) if name not in editable]

    def save_model(self, request, obj, form, change):
        """Enregistre les textes d'un brouillon via le service."""
        from facturation_bj.contrib.django.conf import get_invoice_service

        changes = InvoiceUpdate(**{name: form.cleaned_data[name] for name in form.changed_data})
        try:
            get_invoice_service().update(str(obj.pk), changes, user_id=str(request.user.pk))
        except FacturationError as exc:
            logger.warning("Modification impossible pour %s : %s", obj.pk, exc)
            self.message_user(request, f"{obj} : {exc}", messages.ERROR)

    @admin.action(description="Émettre (certification MECeF)")
    def finalize_invoices(self, request, queryset):
        """Émet les brouillons sélectionnés via le service."""
        from facturation_bj.contrib.django.conf import get_invoice_service

        service = get_invoice_service()
        count = 0

        for invoice in queryset:
            try:
                service.finalize(str(invoice.pk), user_id=str(request.user.pk))
                count += 1
            except FacturationError as exc:
                logger.warning("Émission impossible pour %s : %s", invoice.pk, exc)
                self.message_user(
                    request,
                    f"{invoice} : {exc}",
                    messages.ERROR,
                )

        if count:
            self.message_user(
                request,
                f"{count} document(s) émis avec succès.",
                messages.SUCCESS,
            )

    @admin.action(description="Émettre en tâche de fond (Celery)")
    def finalize_invoices_async(self, request, queryset):
        """Lance la tâche Celery d'émission pour chaque brouillon."""
        from facturation_bj.contrib.django.tasks import finalize_invoice

        count = 0
        for invoice in queryset:
            if invoice.status != InvoiceStatusChoices.DRAFT:
                self.message_user(
                    request,
                    f"{invoice} : déjà émis.",
                    messages.WARNING,
                )
                continue
            finalize_invoice.delay(str(invoice.pk), user_id=str(request.user.pk))
            count += 1

        if count:
            self.message_user(
                request,
                f"{count} émission(s) lancée(s).",
                messages.SUCCESS,
            )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Consultation du journal d'audit."""

    list_display = ["created_at", "action", "entity_type", "entity_id", "user_id"]
    list_filter = ["action", "entity_type"]
    search_fields = ["entity_id", "user_id"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
