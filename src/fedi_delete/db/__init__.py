from .base import DatabaseSessionManager, Base
from .models import (
    Account,
    DeliveryLedger,
    Follow,
    Quote,
    Report,
    Status,
    Tombstone,
)

__all__ = [
    "DatabaseSessionManager",
    "Base",
    "Account",
    "DeliveryLedger",
    "Follow",
    "Quote",
    "Report",
    "Status",
    "Tombstone",
]
