"""
Application layer.

Use cases that orchestrate domain rules over the infrastructure.
"""

from .reclaim_service import CapacityReclaimer

__all__ = ["CapacityReclaimer"]
