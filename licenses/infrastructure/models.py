"""
License and AuditLog models.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    A license record: tier, status and validity window of an owner's
    entitlement. The signed token minted at issue time is kept for
    re-download; the record stays the source of truth.
    """

    TIER_CHOICES = [
        ("community", "Community"),
        ("trial", "Trial"),
        ("pro", "Pro"),
        ("enterprise", "Enterprise"),
    ]

    STATUS_CHOICES = [
        ("active", "Active"),
        ("expired", "Expired"),
        ("revoked", "Revoked"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.UUIDField(db_index=True, help_text="External user id")
    tier = models.CharField(max_length=20, choices=TIER_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    max_activations = models.IntegerField(default=1, help_text="Maximum live activations")
    hardware_id = models.CharField(
        max_length=255, blank=True, default="", help_text="Hardware binding set at issue time"
    )
    key_id = models.CharField(max_length=64, blank=True, default="", help_text="Signing key id")
    token = models.TextField(blank=True, default="")
    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_id", "status"]),
            models.Index(fields=["status", "expires_at"]),
        ]

    def __str__(self):
        return f"{self.tier} license {self.id}"

    @property
    def is_valid(self) -> bool:
        """
        Check if license is currently usable.

        Returns:
            True if license is active and not expired
        """
        if self.status != "active":
            return False
        return self.expires_at >= timezone.now()


class AuditLog(models.Model):
    """
    Immutable audit trail of license and activation events.
    """

    ACTION_CHOICES = [
        ("license_issued", "License Issued"),
        ("license_revoked", "License Revoked"),
        ("license_expired", "License Expired"),
        ("license_activated", "License Activated"),
        ("license_deactivated", "License Deactivated"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.UUIDField(unique=True)
    entity_type = models.CharField(max_length=50)
    entity_id = models.UUIDField()
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    changes = models.JSONField(default=dict, help_text="Details of the change")
    occurred_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "license_audit_logs"
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["occurred_at"]),
            models.Index(fields=["action"]),
        ]

    def __str__(self):
        return f"{self.action} - {self.entity_type} {self.entity_id}"
