"""URL configuration for the clinic_desk project."""

from django.urls import include, path

urlpatterns = [
    path("api/", include("clinic_desk.patients.urls")),
    path("api/queue/", include("clinic_desk.queue.urls")),
    path("api/", include("clinic_desk.consultation.urls")),
    path("api/", include("clinic_desk.dispensary.urls")),
]
