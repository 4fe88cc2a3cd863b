"""URL configuration for the registration API."""

from django.urls import path

from . import views

app_name = "patients"

urlpatterns = [
    path("queue/register/", views.api_register, name="api_register"),
]
