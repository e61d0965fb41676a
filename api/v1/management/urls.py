"""
URL configuration for management API endpoints.
"""

from django.urls import path

from api.v1.management import views

app_name = "management"

urlpatterns = [
    path(
        "licenses",
        views.LicenseCollectionView.as_view(),
        name="licenses",
    ),
    path(
        "licenses/<uuid:license_id>",
        views.LicenseDetailView.as_view(),
        name="license-detail",
    ),
    path(
        "licenses/<uuid:license_id>/activations",
        views.LicenseActivationsView.as_view(),
        name="license-activations",
    ),
    path(
        "entitlements",
        views.EntitlementsView.as_view(),
        name="entitlements",
    ),
]
