from __future__ import annotations

import logging
from typing import Protocol

from fedi_delete.core.errors import DeliverySubmissionError
from fedi_delete.db.repository import DeleteRepository
from fedi_delete.models import AccountRecord

from .activitypub import DeleteActivityBuilder
from .audience import AudienceCalculator
from .delivery import DeliveryDispatcher


logger = logging.getLogger(__name__)


class AccountDeleter(Protocol):
    async def delete_account(
        self,
        account: AccountRecord,
        *,
        reserve_username: bool,
        skip_federation_echo: bool,
    ) -> bool:
        ...


class AccountDeletionService:
    """Removes an account and everything it owns."""

    def __init__(
        self,
        *,
        repository: DeleteRepository,
        audience: AudienceCalculator,
        dispatcher: DeliveryDispatcher,
        builder: DeleteActivityBuilder,
    ) -> None:
        self._repository = repository
        self._audience = audience
        self._dispatcher = dispatcher
        self._builder = builder

    async def delete_account(
        self,
        account: AccountRecord,
        *,
        reserve_username: bool,
        skip_federation_echo: bool,
    ) -> bool:
        """Purges the account.

        Args:
            account: The account to delete.
            reserve_username: Keep the account row so the username stays taken.
            skip_federation_echo: Do not announce the deletion to remote
                followers, used when the deletion itself arrived by federation.

        Returns:
            False if the account was already gone.
        """
        inboxes = frozenset()
        if not skip_federation_echo:
            inboxes = self._audience.compute_audience(account)

        if not self._repository.purge_account(
            account.id, reserve_username=reserve_username
        ):
            return False
        logger.info(
            "Account %s deleted (reserve_username=%s)", account.uri, reserve_username
        )

        if inboxes:
            activity = self._builder.build_account_delete(account)
            for inbox_url in inboxes:
                try:
                    await self._dispatcher.enqueue_delivery(activity, inbox_url)
                except DeliverySubmissionError as exc:
                    logger.warning("Could not queue account Delete: %s", exc)
        return True
