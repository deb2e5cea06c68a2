from __future__ import annotations

import logging
from typing import Optional

from fedi_delete.db.repository import DeleteRepository
from fedi_delete.models import (
    NOT_FOUND,
    AccountRecord,
    AccountTarget,
    QuoteAuthorizationTarget,
    ResolvedTarget,
    StatusTarget,
)


logger = logging.getLogger(__name__)


class ObjectResolver:
    """Maps the object of a Delete activity to a local entity.

    Resolution order, first match wins: the actor itself, a quote approval,
    a status. Soft-deleted statuses do not resolve, so a Delete replayed
    after a moderation discard is a no-op.
    """

    def __init__(self, repository: DeleteRepository) -> None:
        self._repository = repository

    def resolve(
        self,
        object_ref: str,
        actor: AccountRecord,
        *,
        atom_uri: Optional[str] = None,
    ) -> ResolvedTarget:
        if object_ref == actor.uri:
            return AccountTarget(actor.id)

        quote = self._repository.find_quote_by_approval_uri(object_ref)
        if quote is not None:
            return QuoteAuthorizationTarget(quote.id)

        status = self._repository.find_status_by_uri(object_ref)
        if atom_uri and (status is None or status.account_id != actor.id):
            # an id match owned by someone else loses to the actor's own atomUri match
            fallback = self._repository.find_status_by_uri(atom_uri)
            if fallback is not None and (status is None or fallback.account_id == actor.id):
                status = fallback
        if status is not None:
            return StatusTarget(status.id)

        logger.debug("Delete object %s did not resolve to a local entity", object_ref)
        return NOT_FOUND
