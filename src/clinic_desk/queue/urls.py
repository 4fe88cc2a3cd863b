"""URL configuration for the queue API."""

from django.urls import path

from . import views

app_name = "queue"

urlpatterns = [
    path("", views.api_queue, name="api_queue"),
    path("call-next/", views.api_call_next, name="api_call_next"),
    path("pause/", views.api_toggle_pause, name="api_toggle_pause"),
    path("<uuid:entry_id>/transition/", views.api_transition, name="api_transition"),
    path("<uuid:entry_id>/remove/", views.api_remove, name="api_remove"),
]
