"""URL configuration for the consultation API."""

from django.urls import path

from . import views

app_name = "consultation"

urlpatterns = [
    path(
        "queue/<uuid:entry_id>/consultation/",
        views.api_start_consultation,
        name="api_start_consultation",
    ),
    path("consultations/<uuid:session_id>/items/", views.api_add_item, name="api_add_item"),
    path(
        "consultations/<uuid:session_id>/items/<uuid:item_id>/",
        views.api_item_detail,
        name="api_item_detail",
    ),
    path(
        "consultations/<uuid:session_id>/complete/",
        views.api_complete_consultation,
        name="api_complete_consultation",
    ),
]
