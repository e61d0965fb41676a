"""
Activation models are defined in activations.infrastructure.models.
"""
from activations.infrastructure.models import Activation  # noqa: F401
