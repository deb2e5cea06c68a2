from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AccountRecord:
    id: int
    username: str
    domain: Optional[str]
    uri: str
    inbox_url: Optional[str] = None
    shared_inbox_url: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.domain is None

    @property
    def preferred_inbox_url(self) -> Optional[str]:
        """Shared inbox when the server has one, else the personal inbox."""
        return self.shared_inbox_url or self.inbox_url or None


@dataclass(frozen=True)
class StatusRecord:
    id: int
    uri: Optional[str]
    account_id: int
    reblog_of_id: Optional[int]
    text: str
    discarded_at: Optional[int] = None

    @property
    def is_reblog(self) -> bool:
        return self.reblog_of_id is not None


@dataclass(frozen=True)
class QuoteRecord:
    id: int
    status_id: int
    quoted_status_id: Optional[int]
    quoted_account_id: Optional[int]
    approval_uri: Optional[str]
    state: str


@dataclass(frozen=True)
class StatusRemoval:
    """Result of a hard delete: the removed status and the reblogs cascaded with it."""

    status: StatusRecord
    reblogs: tuple[StatusRecord, ...] = ()


__all__ = ["AccountRecord", "StatusRecord", "QuoteRecord", "StatusRemoval"]
