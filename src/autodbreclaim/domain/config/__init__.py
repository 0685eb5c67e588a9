"""
Configuration domain package.

This package contains the domain layer for configuration management.
"""

from .models import (
    AuthType,
    Credential,
    MissingTablePolicy,
    ReclaimSettings,
    ReclaimTarget,
)

__all__ = [
    "AuthType",
    "Credential",
    "MissingTablePolicy",
    "ReclaimSettings",
    "ReclaimTarget",
]
