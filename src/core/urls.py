"""URL configuration for restbase-update."""

from django.urls import path

from . import views

urlpatterns = [
    # Health check for the worker's web process
    path("health/", views.health, name="health"),
]
