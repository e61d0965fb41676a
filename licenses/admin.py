"""
Django admin configuration for licenses app.
"""
import json

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from licenses.infrastructure.models import AuditLog, License


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "id",
        "owner_id",
        "tier",
        "status_display",
        "max_activations",
        "activations_used",
        "expires_at",
        "created_at",
    ]
    list_filter = ["tier", "status", "expires_at", "created_at"]
    search_fields = ["id", "owner_id", "hardware_id"]
    readonly_fields = [
        "id",
        "key_id",
        "token",
        "issued_at",
        "revoked_at",
        "created_at",
        "updated_at",
        "activations_used",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "owner_id", "tier", "status", "hardware_id"),
            },
        ),
        (
            "Activations",
            {
                "fields": ("max_activations", "activations_used"),
            },
        ),
        (
            "Validity",
            {
                "fields": ("issued_at", "expires_at", "revoked_at"),
            },
        ),
        (
            "Token",
            {
                "fields": ("key_id", "token"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def status_display(self, obj):
        """Display status with color coding, treating a lapsed license as expired."""
        status = obj.status
        if status == "active" and obj.expires_at < timezone.now():
            status = "expired"
        colors = {
            "active": "green",
            "expired": "gray",
            "revoked": "red",
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(status, "black"),
            status.upper(),
        )

    status_display.short_description = "Status"

    def activations_used(self, obj):
        """Display number of live activations."""
        return obj.activations.filter(deactivated_at__isnull=True).count()

    activations_used.short_description = "Activations Used"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).prefetch_related("activations")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Admin interface for AuditLog model."""

    list_display = [
        "action",
        "entity_type",
        "entity_id",
        "occurred_at",
    ]
    list_filter = ["action", "entity_type", "occurred_at"]
    search_fields = ["entity_id", "event_id"]
    readonly_fields = ["id", "event_id", "occurred_at", "created_at", "changes_display"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "event_id", "entity_type", "entity_id", "action"),
            },
        ),
        (
            "Details",
            {
                "fields": ("changes_display", "occurred_at", "created_at"),
            },
        ),
    )

    def changes_display(self, obj):
        """Display changes in a formatted way."""
        if obj.changes:
            return format_html(
                '<pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; overflow-x: auto;">{}</pre>',
                json.dumps(obj.changes, indent=2),
            )
        return "-"

    changes_display.short_description = "Changes"

    def has_add_permission(self, request):
        """Audit logs are read-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Audit logs are read-only."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Audit logs should not be deleted."""
        return False
