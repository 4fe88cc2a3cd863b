"""URL configuration for the dispensary API."""

from django.urls import path

from . import views

app_name = "dispensary"

urlpatterns = [
    path("consultations/<uuid:session_id>/invoice/", views.api_invoice, name="api_invoice"),
    path(
        "consultations/<uuid:session_id>/payments/",
        views.api_record_payment,
        name="api_record_payment",
    ),
    path("payments/<uuid:payment_id>/void/", views.api_void_payment, name="api_void_payment"),
    path(
        "consultations/<uuid:session_id>/invoice/print/",
        views.api_invoice_print,
        name="api_invoice_print",
    ),
    path(
        "treatment-items/<uuid:item_id>/label/",
        views.api_medication_label,
        name="api_medication_label",
    ),
]
