"""
URL configuration for engine-facing license endpoints.
"""

from django.urls import path

from api.v1.license import views

app_name = "license"

urlpatterns = [
    path(
        "validate",
        views.ValidateLicenseView.as_view(),
        name="validate-license",
    ),
    path(
        "activate",
        views.ActivateLicenseView.as_view(),
        name="activate-license",
    ),
    path(
        "deactivate",
        views.DeactivateLicenseView.as_view(),
        name="deactivate-license",
    ),
]
