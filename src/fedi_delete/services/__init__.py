from .account_deletion import AccountDeleter, AccountDeletionService
from .activitypub import DeleteActivityBuilder
from .audience import AudienceCalculator
from .delete_processor import (
    DeleteActivityProcessor,
    DeleteOutcome,
    DeleteResult,
    ProcessingState,
)
from .delivery import DeliveryDispatcher, DeliveryWorker, LedgerDeliveryDispatcher
from .resolver import ObjectResolver

__all__ = [
    "AccountDeleter",
    "AccountDeletionService",
    "AudienceCalculator",
    "DeleteActivityBuilder",
    "DeleteActivityProcessor",
    "DeleteOutcome",
    "DeleteResult",
    "DeliveryDispatcher",
    "DeliveryWorker",
    "LedgerDeliveryDispatcher",
    "ObjectResolver",
    "ProcessingState",
]
