"""
Alert subscriptions ("notify me about new listings here").
"""

from .backend import AlertBackend, DuckDBAlertBackend, MemoryAlertBackend
from .manager import AlertManager, AlertPermissionError, AlertSpecError
from .types import AlertRegion, AlertSubscription, AlertType, ProximitySpec

__all__ = [
    "AlertBackend",
    "AlertManager",
    "AlertPermissionError",
    "AlertRegion",
    "AlertSpecError",
    "AlertSubscription",
    "AlertType",
    "DuckDBAlertBackend",
    "MemoryAlertBackend",
    "ProximitySpec",
]
