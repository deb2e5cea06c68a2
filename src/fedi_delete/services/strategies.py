from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fedi_delete.core.event_bus import (
    ACCOUNT_DELETED,
    QUOTE_REVOKED,
    STATUS_DISCARDED,
    STATUS_REMOVED,
    EventBus,
)
from fedi_delete.db.repository import DeleteRepository
from fedi_delete.models import (
    AccountRecord,
    AccountTarget,
    QuoteAuthorizationTarget,
    StatusRecord,
    StatusTarget,
)

from .account_deletion import AccountDeleter


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyResult:
    """What a strategy did and whether its effects need federating.

    ``reblogs`` lists reblogs removed along with a hard-deleted status; the
    processor re-issues a Delete to each reblogger's remote followers.
    """

    changed: bool
    federate: bool = False
    reblogs: tuple[StatusRecord, ...] = ()


class StatusDeletionStrategy:
    """Hard-deletes a status with its reblogs, or soft-deletes it while reported."""

    def __init__(self, repository: DeleteRepository, event_bus: Optional[EventBus] = None):
        self._repository = repository
        self._event_bus = event_bus

    async def apply(self, target: StatusTarget, actor: AccountRecord) -> StrategyResult:
        if self._repository.has_active_report(target.status_id):
            discarded = self._repository.discard_status(target.status_id)
            if discarded is None:
                return StrategyResult(changed=False)
            logger.info(
                "Status %s is under an active report; kept for inspection",
                target.status_id,
            )
            await self._publish(STATUS_DISCARDED, discarded)
            return StrategyResult(changed=True)

        removal = self._repository.remove_status(target.status_id)
        if removal is None:
            # A concurrent Delete committed first.
            return StrategyResult(changed=False)
        logger.info(
            "Status %s removed together with %d reblogs",
            target.status_id,
            len(removal.reblogs),
        )
        await self._publish(STATUS_REMOVED, removal)
        return StrategyResult(changed=True, federate=True, reblogs=removal.reblogs)

    async def _publish(self, event_type, data):
        if self._event_bus is not None:
            await self._event_bus.publish(event_type, data)


class AccountDeletionStrategy:
    """Delegates to the account deleter; the inbound activity is already the federated event."""

    def __init__(self, account_deleter: AccountDeleter, event_bus: Optional[EventBus] = None):
        self._account_deleter = account_deleter
        self._event_bus = event_bus

    async def apply(self, target: AccountTarget, actor: AccountRecord) -> StrategyResult:
        deleted = await self._account_deleter.delete_account(
            actor,
            reserve_username=False,
            skip_federation_echo=True,
        )
        if deleted and self._event_bus is not None:
            await self._event_bus.publish(ACCOUNT_DELETED, actor)
        return StrategyResult(changed=bool(deleted))


class QuoteAuthorizationStrategy:
    """Revokes a quote authorization. Quoting servers notice on re-verification."""

    def __init__(self, repository: DeleteRepository, event_bus: Optional[EventBus] = None):
        self._repository = repository
        self._event_bus = event_bus

    async def apply(
        self, target: QuoteAuthorizationTarget, actor: AccountRecord
    ) -> StrategyResult:
        revoked = self._repository.revoke_quote(target.quote_id)
        if revoked:
            logger.info("Quote %s revoked by %s", target.quote_id, actor.uri)
            if self._event_bus is not None:
                await self._event_bus.publish(QUOTE_REVOKED, target.quote_id)
        return StrategyResult(changed=revoked)


__all__ = [
    "StrategyResult",
    "StatusDeletionStrategy",
    "AccountDeletionStrategy",
    "QuoteAuthorizationStrategy",
]
