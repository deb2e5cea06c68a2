"""Closed set of objects a Delete activity can resolve to."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class TargetKind(str, enum.Enum):
    ACCOUNT = "account"
    STATUS = "status"
    QUOTE_AUTHORIZATION = "quote_authorization"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AccountTarget:
    account_id: int
    kind: TargetKind = TargetKind.ACCOUNT


@dataclass(frozen=True)
class StatusTarget:
    status_id: int
    kind: TargetKind = TargetKind.STATUS


@dataclass(frozen=True)
class QuoteAuthorizationTarget:
    quote_id: int
    kind: TargetKind = TargetKind.QUOTE_AUTHORIZATION


@dataclass(frozen=True)
class NotFound:
    kind: TargetKind = TargetKind.NOT_FOUND


NOT_FOUND = NotFound()

ResolvedTarget = Union[AccountTarget, StatusTarget, QuoteAuthorizationTarget, NotFound]


__all__ = [
    "TargetKind",
    "AccountTarget",
    "StatusTarget",
    "QuoteAuthorizationTarget",
    "NotFound",
    "NOT_FOUND",
    "ResolvedTarget",
]
