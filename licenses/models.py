"""
License models are defined in licenses.infrastructure.models.
"""
from licenses.infrastructure.models import AuditLog, License  # noqa: F401
