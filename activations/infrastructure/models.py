"""
Activation Django ORM model.

This is the infrastructure layer model for activations.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Activation(models.Model):
    """
    Binding of a license to one hardware identity.
    Consumes an activation slot until deactivated_at is set.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.PROTECT,
        related_name="activations",
    )
    hardware_id = models.CharField(max_length=255)
    hostname = models.CharField(max_length=255, blank=True, default="")
    platform = models.CharField(max_length=100, blank=True, default="")
    version = models.CharField(max_length=50, blank=True, default="")
    ip_address = models.CharField(max_length=64, blank=True, default="")
    activated_at = models.DateTimeField(default=timezone.now)
    last_seen_at = models.DateTimeField(default=timezone.now)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "license_activations"
        ordering = ["-activated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["license", "hardware_id"],
                condition=Q(deactivated_at__isnull=True),
                name="uniq_live_activation_per_hardware",
            ),
        ]
        indexes = [
            models.Index(fields=["license", "hardware_id"]),
            models.Index(fields=["license", "deactivated_at"]),
        ]

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None

    def __str__(self):
        return f"{self.license_id} @ {self.hardware_id}"
