"""
Domain exceptions.

Domain exceptions represent business outcomes and domain-specific
error conditions. Expected outcomes (expired, revoked, hardware mismatch,
activation limit) are raised as typed exceptions so callers can branch
on them explicitly.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class LicenseExpiredError(LicenseException):
    """
    Raised when a license has expired.

    status_changed is set when the check itself flipped the stored
    status, so the caller announces the expiry once.
    """

    def __init__(
        self,
        message: str = "License has expired",
        license_id=None,
        owner_id=None,
        status_changed: bool = False,
    ):
        super().__init__(message, code="LICENSE_EXPIRED")
        self.license_id = license_id
        self.owner_id = owner_id
        self.status_changed = status_changed


class LicenseRevokedError(LicenseException):
    """Raised when a license has been revoked."""

    def __init__(self, message: str = "License has been revoked"):
        super().__init__(message, code="LICENSE_REVOKED")


class HardwareMismatchError(LicenseException):
    """Raised when a license is not activated on the requesting hardware."""

    def __init__(self, message: str = "License is bound to different hardware"):
        super().__init__(message, code="HARDWARE_MISMATCH")


class InvalidTierError(LicenseException):
    """Raised when a tier value is not one of the known tiers."""

    def __init__(self, message: str = "Invalid license tier"):
        super().__init__(message, code="INVALID_TIER")


class TokenException(LicenseException):
    """Base exception for license token errors."""

    pass


class InvalidSignatureError(TokenException):
    """Raised when a license token signature does not verify."""

    def __init__(self, message: str = "License signature verification failed"):
        super().__init__(message, code="INVALID_SIGNATURE")


class MalformedTokenError(TokenException):
    """Raised when a license token cannot be parsed."""

    def __init__(self, message: str = "Malformed license token"):
        super().__init__(message, code="MALFORMED_TOKEN")


class InvalidKeyMaterialError(DomainException):
    """Raised when signing or verification key material is unusable."""

    def __init__(self, message: str = "Invalid license key material"):
        super().__init__(message, code="INVALID_KEY_MATERIAL")


class ActivationException(DomainException):
    """Base exception for activation-related errors."""

    pass


class ActivationNotFoundError(ActivationException):
    """Raised when an activation is not found."""

    def __init__(self, message: str = "Activation not found"):
        super().__init__(message, code="ACTIVATION_NOT_FOUND")


class ActivationLimitReachedError(ActivationException):
    """Raised when a license has no free activation slot left."""

    def __init__(self, message: str = "Activation limit reached"):
        super().__init__(message, code="ACTIVATION_LIMIT_REACHED")


class InvalidHardwareIdentifierError(ActivationException):
    """Raised when a hardware identifier is empty or too long."""

    def __init__(self, message: str = "Invalid hardware identifier"):
        super().__init__(message, code="INVALID_HARDWARE_ID")


class PersistenceError(DomainException):
    """
    Raised when the license store or activation ledger fails.

    Wraps database errors so they propagate with context and are never
    mistaken for a validation outcome.
    """

    def __init__(self, message: str = "License storage is unavailable"):
        super().__init__(message, code="PERSISTENCE_ERROR")


class LicenseServerUnavailableError(LicenseException):
    """Raised by the engine client when the license server cannot be used."""

    def __init__(self, message: str = "License server is unavailable"):
        super().__init__(message, code="LICENSE_SERVER_UNAVAILABLE")
