from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from fedi_delete.core.errors import (
    DeliverySubmissionError,
    PersistenceError,
    UnauthorizedError,
)
from fedi_delete.core.event_bus import EventBus
from fedi_delete.core.settings import DeleteSettings
from fedi_delete.db.repository import DeleteRepository
from fedi_delete.models import (
    AccountRecord,
    AccountTarget,
    NotFound,
    QuoteAuthorizationTarget,
    ResolvedTarget,
    StatusRecord,
    StatusTarget,
    TargetKind,
)
from fedi_delete.schemas import DeleteActivity

from .account_deletion import AccountDeleter
from .activitypub import DeleteActivityBuilder, uri_host
from .audience import AudienceCalculator
from .delivery import DeliveryDispatcher
from .resolver import ObjectResolver
from .strategies import (
    AccountDeletionStrategy,
    QuoteAuthorizationStrategy,
    StatusDeletionStrategy,
    StrategyResult,
)


logger = logging.getLogger(__name__)


class DeleteOutcome(str, enum.Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    RETRYABLE_FAILURE = "retryable_failure"


class ProcessingState(str, enum.Enum):
    RECEIVED = "received"
    RESOLVED = "resolved"
    AUTHORIZED = "authorized"
    APPLIED = "applied"
    FEDERATED = "federated"
    SKIPPED = "skipped"
    DONE = "done"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class DeleteResult:
    """Single outcome reported for one Delete activity."""

    activity_id: str
    outcome: DeleteOutcome = DeleteOutcome.SUCCESS
    kind: TargetKind = TargetKind.NOT_FOUND
    states: List[ProcessingState] = field(
        default_factory=lambda: [ProcessingState.RECEIVED]
    )
    changed: bool = False
    deliveries_enqueued: int = 0
    deliveries_dropped: int = 0
    reason: Optional[str] = None

    @property
    def state(self) -> ProcessingState:
        return self.states[-1]

    def advance(self, state: ProcessingState) -> None:
        self.states.append(state)


class DeleteActivityProcessor:
    """Orchestrates an inbound Delete: resolve, authorize, apply, re-federate.

    Every mutation is idempotent, so a caller receiving a retryable failure
    re-delivers the whole activity. Deliveries are handed off and never
    awaited to completion.
    """

    def __init__(
        self,
        *,
        settings: DeleteSettings,
        repository: DeleteRepository,
        dispatcher: DeliveryDispatcher,
        account_deleter: AccountDeleter,
        builder: Optional[DeleteActivityBuilder] = None,
        resolver: Optional[ObjectResolver] = None,
        audience: Optional[AudienceCalculator] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._dispatcher = dispatcher
        self._builder = builder or DeleteActivityBuilder(
            local_domain=settings.local_domain
        )
        self._resolver = resolver or ObjectResolver(repository)
        self._audience = audience or AudienceCalculator(repository)
        self._status_strategy = StatusDeletionStrategy(repository, event_bus)
        self._account_strategy = AccountDeletionStrategy(account_deleter, event_bus)
        self._quote_strategy = QuoteAuthorizationStrategy(repository, event_bus)

    async def process(
        self,
        activity: Union[DeleteActivity, Dict[str, Any]],
        *,
        sender_uri: Optional[str] = None,
    ) -> DeleteResult:
        """Processes one Delete activity.

        Args:
            activity: The Delete activity, parsed or as a raw JSON document.
            sender_uri: The actor whose signature the inbox verified, if any.

        Returns:
            The DeleteResult describing the outcome.

        Raises:
            ValueError: If the activity is not a well-formed Delete.
        """
        if not isinstance(activity, DeleteActivity):
            activity = DeleteActivity.model_validate(activity)

        result = DeleteResult(activity_id=activity.id)
        logger.info(
            "Received Delete %s from %s for %s",
            activity.id,
            activity.actor,
            activity.object_uri,
        )
        try:
            await self._perform(activity, sender_uri, result)
        except UnauthorizedError as exc:
            logger.warning("Rejected Delete %s: %s", activity.id, exc)
            result.outcome = DeleteOutcome.REJECTED
            result.reason = str(exc)
            result.advance(ProcessingState.REJECTED)
        except PersistenceError as exc:
            logger.error("Delete %s failed, safe to retry: %s", activity.id, exc)
            result.outcome = DeleteOutcome.RETRYABLE_FAILURE
            result.reason = str(exc)
            result.advance(ProcessingState.FAILED)
        return result

    async def _perform(
        self,
        activity: DeleteActivity,
        sender_uri: Optional[str],
        result: DeleteResult,
    ) -> None:
        if sender_uri is not None and sender_uri != activity.actor:
            raise UnauthorizedError(
                f"signed by {sender_uri} but claims actor {activity.actor}"
            )

        actor = self._repository.find_account_by_uri(activity.actor)
        if actor is None:
            logger.info("Ignoring Delete %s from unknown actor %s", activity.id, activity.actor)
            self._finish(result, ProcessingState.SKIPPED)
            return

        target = self._resolver.resolve(
            activity.object_uri, actor, atom_uri=activity.object_atom_uri
        )
        result.kind = target.kind
        result.advance(ProcessingState.RESOLVED)

        self._authorize(target, actor)
        if isinstance(target, (StatusTarget, NotFound)):
            self._remember_tombstone(activity.object_uri, actor)

        if isinstance(target, NotFound):
            logger.info(
                "Delete %s: %s not found, nothing to do", activity.id, activity.object_uri
            )
            self._finish(result, ProcessingState.SKIPPED)
            return
        result.advance(ProcessingState.AUTHORIZED)

        outcome = await self._apply(target, actor)
        result.changed = outcome.changed
        result.advance(ProcessingState.APPLIED)

        if not outcome.federate:
            self._finish(result, ProcessingState.SKIPPED)
            return

        enqueued, dropped = await self._federate_reblogs(outcome.reblogs, actor)
        result.deliveries_enqueued = enqueued
        result.deliveries_dropped = dropped
        self._finish(result, ProcessingState.FEDERATED)

    def _authorize(self, target: ResolvedTarget, actor: AccountRecord) -> None:
        """Raises UnauthorizedError unless ``actor`` may delete ``target``."""
        if isinstance(target, (AccountTarget, NotFound)):
            return
        if isinstance(target, StatusTarget):
            status = self._repository.find_status(target.status_id)
            if status is not None and status.account_id != actor.id:
                raise UnauthorizedError(
                    f"{actor.uri} does not own status {target.status_id}"
                )
            return
        if isinstance(target, QuoteAuthorizationTarget):
            quote = self._repository.find_quote(target.quote_id)
            if quote is not None and quote.quoted_account_id != actor.id:
                raise UnauthorizedError(
                    f"{actor.uri} did not authorize quote {target.quote_id}"
                )
            return
        raise TypeError(f"unhandled delete target {target!r}")

    async def _apply(self, target: ResolvedTarget, actor: AccountRecord) -> StrategyResult:
        if isinstance(target, AccountTarget):
            return await self._account_strategy.apply(target, actor)
        if isinstance(target, StatusTarget):
            return await self._status_strategy.apply(target, actor)
        if isinstance(target, QuoteAuthorizationTarget):
            return await self._quote_strategy.apply(target, actor)
        raise TypeError(f"unhandled delete target {target!r}")

    def _remember_tombstone(self, object_uri: str, actor: AccountRecord) -> None:
        if not self._settings.tombstones_enabled:
            return
        host = uri_host(object_uri)
        if host and host == uri_host(actor.uri):
            self._repository.remember_tombstone(object_uri, actor.id)

    async def _federate_reblogs(
        self, reblogs: Tuple[StatusRecord, ...], author: AccountRecord
    ) -> Tuple[int, int]:
        enqueued = dropped = 0
        for reblog in reblogs:
            reblogger = self._repository.find_account(reblog.account_id)
            if reblogger is None:
                continue
            inboxes = self._audience.compute_audience(reblogger, exclude=author)
            if not inboxes:
                continue
            document = self._builder.build_delete(reblog, reblogger)
            for inbox_url in inboxes:
                if await self._hand_off(document, inbox_url):
                    enqueued += 1
                else:
                    dropped += 1
        if enqueued or dropped:
            logger.info(
                "Re-federated %d reblog deletions (%d handoffs dropped)", enqueued, dropped
            )
        return enqueued, dropped

    async def _hand_off(self, document: Dict[str, Any], inbox_url: str) -> bool:
        attempts = self._settings.delivery_submission_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self._dispatcher.enqueue_delivery(document, inbox_url)
                return True
            except DeliverySubmissionError as exc:
                logger.warning(
                    "Handoff of %s to %s failed (attempt %d/%d): %s",
                    document["id"],
                    inbox_url,
                    attempt,
                    attempts,
                    exc,
                )
        return False

    @staticmethod
    def _finish(result: DeleteResult, state: ProcessingState) -> None:
        result.advance(state)
        result.advance(ProcessingState.DONE)


__all__ = [
    "DeleteActivityProcessor",
    "DeleteOutcome",
    "DeleteResult",
    "ProcessingState",
]
