"""Domain models for the Delete activity service."""

from .records import AccountRecord, QuoteRecord, StatusRecord, StatusRemoval
from .targets import (
    NOT_FOUND,
    AccountTarget,
    NotFound,
    QuoteAuthorizationTarget,
    ResolvedTarget,
    StatusTarget,
    TargetKind,
)

__all__ = [
    "AccountRecord",
    "QuoteRecord",
    "StatusRecord",
    "StatusRemoval",
    "NOT_FOUND",
    "AccountTarget",
    "NotFound",
    "QuoteAuthorizationTarget",
    "ResolvedTarget",
    "StatusTarget",
    "TargetKind",
]
