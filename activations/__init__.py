"""
Activations module - Hardware activation ledger.

This module handles:
- Activation entity and domain logic
- Activation caps per license
- Machine activation/deactivation
"""
