"""Vues Django pour la facturation certifiée MECeF.

FR: Vues CBV (Class-Based Views) JSON branchées sur InvoiceService :
    création, consultation, modification, émission, annulation,
    règlements et devis. Pas de dépendance à Django REST Framework. Les
    erreurs de la lib sont traduites en codes HTTP.
EN: JSON CBV views on top of InvoiceService. No DRF dependency. Library
    errors are translated into HTTP status codes.
"""

import json
import logging

from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from pydantic import ValidationError

from facturation_bj.contrib.django.conf import get_invoice_service
from facturation_bj.contrib.django.serializers import (
    invoice_to_dict,
    payment_to_dict,
    search_response_to_dict,
)
from facturation_bj.errors import (
    AllocationConflict,
    CertificationFailure,
    FacturationError,
    InvalidAmount,
    InvalidDates,
    InvalidLineInput,
    InvalidState,
    NotFound,
    PaymentExceedsBalance,
)
from facturation_bj.lifecycle.service import InvoiceService
from facturation_bj.models.invoice import InvoiceDraft, InvoiceUpdate
from facturation_bj.models.payment import PaymentInput
from facturation_bj.storage.models import InvoiceSearchFilters

logger = logging.getLogger(__name__)

# Codes HTTP des erreurs métier, du plus spécifique au plus général
ERROR_STATUS_CODES: list[tuple[type[FacturationError], int]] = [
    (NotFound, 404),
    (InvalidLineInput, 400),
    (InvalidAmount, 400),
    (InvalidDates, 400),
    (InvalidState, 409),
    (AllocationConflict, 409),
    (CertificationFailure, 502),
]


class BadRequest(Exception):
    """Corps de requête illisible."""


def error_response(exc: FacturationError) -> JsonResponse:
    """Traduit une erreur de la lib en réponse JSON."""
    status = next(
        (code for error_class, code in ERROR_STATUS_CODES if isinstance(exc, error_class)),
        500,
    )
    payload: dict = {"error": str(exc), "code": type(exc).__name__}
    if isinstance(exc, InvalidLineInput):
        payload["field"] = exc.field
        payload["position"] = exc.position
    elif isinstance(exc, PaymentExceedsBalance) and exc.remaining is not None:
        payload["remaining"] = str(exc.remaining)
    elif isinstance(exc, CertificationFailure):
        payload["reason"] = exc.reason
    return JsonResponse(payload, status=status)


@method_decorator(csrf_exempt, name="dispatch")
class ServiceMixin(View):
    """Vue de base : service de facturation et traduction des erreurs."""

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except BadRequest as exc:
            return JsonResponse({"error": str(exc), "code": "BadRequest"}, status=400)
        except ValidationError as exc:
            return JsonResponse(
                {
                    "error": "Données invalides.",
                    "code": "ValidationError",
                    "details": exc.errors(include_url=False, include_context=False),
                },
                status=400,
            )
        except FacturationError as exc:
            if not isinstance(exc, NotFound):
                logger.info("Requête refusée (%s) : %s", type(exc).__name__, exc)
            return error_response(exc)

    @property
    def service(self) -> InvoiceService:
        if not hasattr(self, "_service"):
            self._service = get_invoice_service()
        return self._service

    def read_json(self, request) -> dict:
        """Décode le corps JSON de la requête (objet attendu)."""
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"JSON invalide : {exc}"
            raise BadRequest(msg) from exc
        if not isinstance(data, dict):
            msg = "Un objet JSON est attendu."
            raise BadRequest(msg)
        return data

    def user_id(self, request) -> str | None:
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            return str(user.pk)
        return None

    def invoice_response(self, invoice, status: int = 200) -> JsonResponse:
        return JsonResponse(
            invoice_to_dict(invoice, self.service.status_of(invoice)),
            status=status,
        )


class InvoiceListView(ServiceMixin):
    """Recherche (GET) et création (POST) de documents."""

    def get(self, request) -> JsonResponse:
        """Recherche paginée ; ``status`` et ``type`` sont répétables."""
        params = request.GET
        filters = InvoiceSearchFilters.model_validate(
            {
                "company_id": params.get("company_id"),
                "statuses": params.getlist("status") or None,
                "types": params.getlist("type") or None,
                "client_id": params.get("client_id"),
                "search": params.get("search"),
                "date_from": params.get("date_from"),
                "date_to": params.get("date_to"),
                "page": params.get("page", 1),
                "page_size": params.get("page_size", 50),
            }
        )
        return JsonResponse(search_response_to_dict(self.service.search(filters)))

    def post(self, request) -> JsonResponse:
        """Crée un brouillon, ou l'émet directement avec ``"finalize": true``."""
        data = self.read_json(request)
        company_id = data.pop("company_id", None) or request.GET.get("company_id")
        if not company_id:
            msg = "company_id est obligatoire."
            raise BadRequest(msg)
        finalize = bool(data.pop("finalize", False))
        draft = InvoiceDraft.model_validate(data)

        if finalize:
            invoice = self.service.create_and_finalize(
                str(company_id), draft, created_by_id=self.user_id(request)
            )
        else:
            invoice = self.service.create_draft(
                str(company_id), draft, created_by_id=self.user_id(request)
            )
        return self.invoice_response(invoice, status=201)


class InvoiceDetailView(ServiceMixin):
    """Consultation (GET), modification (PUT) et suppression (DELETE)."""

    def get(self, request, invoice_id) -> JsonResponse:
        return self.invoice_response(self.service.get(str(invoice_id)))

    def put(self, request, invoice_id) -> JsonResponse:
        changes = InvoiceUpdate.model_validate(self.read_json(request))
        invoice = self.service.update(str(invoice_id), changes, user_id=self.user_id(request))
        return self.invoice_response(invoice)

    def delete(self, request, invoice_id) -> HttpResponse:
        self.service.delete(str(invoice_id), user_id=self.user_id(request))
        return HttpResponse(status=204)


class FinalizeInvoiceView(ServiceMixin):
    """Émet un brouillon : certification puis numérotation (POST)."""

    def post(self, request, invoice_id) -> JsonResponse:
        invoice = self.service.finalize(str(invoice_id), user_id=self.user_id(request))
        return self.invoice_response(invoice)


class CancelInvoiceView(ServiceMixin):
    """Annule un brouillon (POST)."""

    def post(self, request, invoice_id) -> JsonResponse:
        invoice = self.service.cancel(str(invoice_id), user_id=self.user_id(request))
        return self.invoice_response(invoice)


class PaymentListView(ServiceMixin):
    """Liste (GET) et enregistrement (POST) des règlements."""

    def get(self, request, invoice_id) -> JsonResponse:
        payments = self.service.list_payments(str(invoice_id))
        return JsonResponse({"results": [payment_to_dict(p) for p in payments]})

    def post(self, request, invoice_id) -> JsonResponse:
        payment = PaymentInput.model_validate(self.read_json(request))
        stored = self.service.record_payment(
            str(invoice_id), payment, user_id=self.user_id(request)
        )
        invoice = self.service.get(str(invoice_id))
        return JsonResponse(
            {
                "payment": payment_to_dict(stored),
                "invoice": invoice_to_dict(invoice, self.service.status_of(invoice)),
            },
            status=201,
        )


class ConvertQuoteView(ServiceMixin):
    """Convertit un devis en facture brouillon (POST)."""

    def post(self, request, invoice_id) -> JsonResponse:
        invoice = self.service.convert_quote(
            str(invoice_id), created_by_id=self.user_id(request)
        )
        return self.invoice_response(invoice, status=201)


class AcceptQuoteView(ServiceMixin):
    """Accepte un devis émis (POST)."""

    def post(self, request, invoice_id) -> JsonResponse:
        quote = self.service.accept_quote(str(invoice_id), user_id=self.user_id(request))
        return self.invoice_response(quote)


class RejectQuoteView(ServiceMixin):
    """Refuse un devis émis (POST)."""

    def post(self, request, invoice_id) -> JsonResponse:
        quote = self.service.reject_quote(str(invoice_id), user_id=self.user_id(request))
        return self.invoice_response(quote)
