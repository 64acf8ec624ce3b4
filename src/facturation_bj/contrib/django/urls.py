"""Configuration des URLs Django pour la facturation certifiée."""

from django.urls import path

from facturation_bj.contrib.django.views import (
    AcceptQuoteView,
    CancelInvoiceView,
    ConvertQuoteView,
    FinalizeInvoiceView,
    InvoiceDetailView,
    InvoiceListView,
    PaymentListView,
    RejectQuoteView,
)

app_name = "facturation_bj"

urlpatterns = [
    path(
        "",
        InvoiceListView.as_view(),
        name="invoice-list",
    ),
    path(
        "<uuid:invoice_id>/",
        InvoiceDetailView.as_view(),
        name="invoice-detail",
    ),
    path(
        "<uuid:invoice_id>/finalize/",
        FinalizeInvoiceView.as_view(),
        name="finalize",
    ),
    path(
        "<uuid:invoice_id>/send/",
        FinalizeInvoiceView.as_view(),
        name="send",
    ),
    path(
        "<uuid:invoice_id>/cancel/",
        CancelInvoiceView.as_view(),
        name="cancel",
    ),
    path(
        "<uuid:invoice_id>/payments/",
        PaymentListView.as_view(),
        name="payments",
    ),
    path(
        "<uuid:invoice_id>/convert/",
        ConvertQuoteView.as_view(),
        name="convert",
    ),
    path(
        "<uuid:invoice_id>/accept/",
        AcceptQuoteView.as_view(),
        name="accept",
    ),
    path(
        "<uuid:invoice_id>/reject/",
        RejectQuoteView.as_view(),
        name="reject",
    ),
]
