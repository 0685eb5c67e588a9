"""
Configuration domain models package.

This package contains all domain models for the configuration system.
"""

from .credential import Credential
from .enums import AuthType, MissingTablePolicy
from .reclaim_settings import ReclaimSettings
from .reclaim_target import ReclaimTarget

__all__ = [
    "AuthType",
    "Credential",
    "MissingTablePolicy",
    "ReclaimSettings",
    "ReclaimTarget",
]
