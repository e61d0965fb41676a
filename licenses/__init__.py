"""
Licenses module - License issuance and validation.

This module handles:
- License entity and tier entitlements
- Signing keys and license tokens
- License lifecycle (issue, revoke, expire)
- Online and offline validation
"""
