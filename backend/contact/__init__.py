from .selection import (
    BulkContactResult,
    Messenger,
    OutboundMessage,
    SelectionManager,
)

__all__ = [
    "BulkContactResult",
    "Messenger",
    "OutboundMessage",
    "SelectionManager",
]
