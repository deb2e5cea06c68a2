from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Set

logger = logging.getLogger(__name__)

STATUS_REMOVED = "status.removed"
STATUS_DISCARDED = "status.discarded"
QUOTE_REVOKED = "quote.revoked"
ACCOUNT_DELETED = "account.deleted"

Listener = Callable[[Any], Any]


class EventBus:
    """In-process fan-out of deletion events to local listeners.

    Timelines, caches and notification fan-out subscribe here to hear about
    content that disappeared. Listener failures are logged and never reach the
    code that published the event.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, event_type: str, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def unsubscribe(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    async def publish(self, event_type: str, data: Any) -> int:
        """Notifies every listener of ``event_type``.

        Coroutine listeners are scheduled as tasks; plain callables run inline.

        Returns:
            The number of listeners notified.
        """
        listeners = list(self._listeners.get(event_type, []))
        for listener in listeners:
            if asyncio.iscoroutinefunction(listener):
                task = asyncio.create_task(listener(data))
                self._pending.add(task)
                task.add_done_callback(self._task_finished)
                continue
            try:
                listener(data)
            except Exception:
                logger.exception("Listener for %s failed", event_type)
        return len(listeners)

    def _task_finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async listener failed: %r", task.exception())


__all__ = [
    "EventBus",
    "STATUS_REMOVED",
    "STATUS_DISCARDED",
    "QUOTE_REVOKED",
    "ACCOUNT_DELETED",
]
