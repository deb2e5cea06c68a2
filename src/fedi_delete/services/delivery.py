from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

import httpx

from fedi_delete.core.errors import DeliverySubmissionError, PersistenceError
from fedi_delete.core.security import load_signing_key, sign_body
from fedi_delete.core.settings import DeleteSettings
from fedi_delete.db.repository import DeleteRepository

if TYPE_CHECKING:
    from fedi_delete.db.models import DeliveryLedger


logger = logging.getLogger(__name__)

ACTIVITY_JSON = "application/activity+json"


class DeliveryDispatcher(Protocol):
    """Hands a signed activity to the delivery queue for one inbox."""

    async def enqueue_delivery(self, activity: Dict[str, Any], inbox_url: str) -> None:
        ...


class LedgerDeliveryDispatcher:
    """Queues deliveries in the delivery ledger for the DeliveryWorker to drain.

    A (activity id, inbox) pair is queued at most once, so re-processing an
    activity never duplicates a delivery.
    """

    def __init__(self, repository: DeleteRepository) -> None:
        self._repository = repository

    async def enqueue_delivery(self, activity: Dict[str, Any], inbox_url: str) -> None:
        object_ref = activity.get("object")
        object_uri = object_ref.get("id") if isinstance(object_ref, dict) else object_ref
        try:
            created = self._repository.enqueue_delivery(
                inbox_url=inbox_url,
                activity_id=activity["id"],
                object_uri=object_uri or "",
                payload=json.dumps(activity, separators=(",", ":")),
            )
        except PersistenceError as exc:
            raise DeliverySubmissionError(inbox_url) from exc
        if not created:
            logger.debug(
                "Delivery of %s to %s already queued", activity["id"], inbox_url
            )


class DeliveryWorker:
    """Background worker posting queued Delete activities to remote inboxes.

    Each queued row gets a single attempt; rows that fail stay failed.
    """

    def __init__(
        self,
        settings: DeleteSettings,
        repository: DeleteRepository,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.repository = repository
        self.running = False
        self.client = client or httpx.AsyncClient(
            timeout=settings.delivery_timeout_seconds
        )

        if self.settings.delivery_signing_key:
            self.signing_key = load_signing_key(self.settings.delivery_signing_key)
        else:
            logger.warning(
                "delivery_signing_key not configured. Outbound deliveries will not be signed."
            )
            self.signing_key = None

    async def start(self):
        self.running = True
        logger.info("Delivery Worker started.")
        while self.running:
            try:
                await self.process_queued_deliveries()
            except Exception as e:
                logger.error(f"Error in Delivery Worker: {e}")
            await asyncio.sleep(self.settings.delivery_worker_interval_seconds)

    async def stop(self):
        self.running = False
        await self.client.aclose()
        logger.info("Delivery Worker stopped.")

    async def process_queued_deliveries(self) -> int:
        """Attempts every queued delivery once. Returns the number attempted."""
        queued = self.repository.get_queued_deliveries(self.settings.delivery_batch_size)
        for item in queued:
            await self._send(item)
        return len(queued)

    def _headers(self, body: bytes) -> Dict[str, str]:
        headers = {
            "Content-Type": ACTIVITY_JSON,
            "Accept": ACTIVITY_JSON,
        }
        if self.signing_key is not None:
            headers["Signature"] = (
                f'keyId="{self.settings.delivery_key_id}",algorithm="ed25519",'
                f'signature="{sign_body(self.signing_key, body)}"'
            )
        return headers

    async def _send(self, item: DeliveryLedger):
        body = item.payload.encode("utf-8")
        try:
            logger.info(
                "Attempting delivery %s of %s to %s",
                item.id,
                item.activity_id,
                item.inbox_url,
            )
            response = await self.client.post(
                item.inbox_url, content=body, headers=self._headers(body)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error delivering {item.id} to {item.inbox_url}: {e}")
            self.repository.update_delivery_status(item.id, "failed")
        except httpx.HTTPError as e:
            logger.error(f"Error delivering {item.id} to {item.inbox_url}: {e}")
            self.repository.update_delivery_status(item.id, "failed")
        else:
            self.repository.update_delivery_status(item.id, "delivered")
            logger.info("Delivered %s to %s", item.activity_id, item.inbox_url)


__all__ = [
    "DeliveryDispatcher",
    "LedgerDeliveryDispatcher",
    "DeliveryWorker",
]
