"""
App configuration for License Trust Service.
"""
import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class LicenseTrustServiceConfig(AppConfig):
    """App configuration for LicenseTrustService."""

    name = "LicenseTrustService"
    verbose_name = "License Trust Service"

    def ready(self):
        """Register event handlers and tracing once the apps are loaded."""
        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()
        register_event_handlers()
        logger.debug("License Trust Service ready")
