"""
Django admin configuration for activations app.
"""

from django.contrib import admin
from django.utils.html import format_html

from activations.infrastructure.models import Activation


@admin.register(Activation)
class ActivationAdmin(admin.ModelAdmin):
    """Admin interface for Activation model."""

    list_display = [
        "license",
        "hardware_id_display",
        "hostname",
        "is_active_display",
        "activated_at",
        "last_seen_at",
    ]
    list_filter = [
        "activated_at",
        "last_seen_at",
        "deactivated_at",
        "license__tier",
    ]
    search_fields = [
        "hardware_id",
        "hostname",
        "license__id",
        "license__owner_id",
    ]
    readonly_fields = [
        "id",
        "activated_at",
        "last_seen_at",
        "deactivated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license", "hardware_id"),
            },
        ),
        (
            "Machine",
            {
                "fields": ("hostname", "platform", "version", "ip_address"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("activated_at", "last_seen_at", "deactivated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def hardware_id_display(self, obj):
        """Display hardware id with truncation."""
        if len(obj.hardware_id) > 50:
            return format_html(
                '<span title="{}">{}</span>',
                obj.hardware_id,
                obj.hardware_id[:47] + "...",
            )
        return obj.hardware_id

    hardware_id_display.short_description = "Hardware"

    def is_active_display(self, obj):
        """Display live status with color."""
        if obj.is_active:
            return format_html('<span style="color: green; font-weight: bold;">✓ Active</span>')
        return format_html('<span style="color: red; font-weight: bold;">✗ Deactivated</span>')

    is_active_display.short_description = "Status"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license")
