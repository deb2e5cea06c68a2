from __future__ import annotations

import logging
from typing import Optional

from fedi_delete.db.repository import DeleteRepository
from fedi_delete.models import AccountRecord


logger = logging.getLogger(__name__)


class AudienceCalculator:
    """Computes which remote inboxes must learn about a removed reblog."""

    def __init__(self, repository: DeleteRepository) -> None:
        self._repository = repository

    def compute_audience(
        self,
        reblogger: AccountRecord,
        *,
        exclude: Optional[AccountRecord] = None,
    ) -> frozenset[str]:
        """Distinct inboxes of the reblogger's remote followers.

        Local followers are served by the in-process timeline path. Remote
        rebloggers get an empty audience: their own server federates the
        removal of their reblogs. The preferred inbox of ``exclude`` (the
        author whose Delete triggered the cascade) is left out, since that
        server already has the Delete.
        """
        if not reblogger.is_local:
            return frozenset()
        inboxes = set(self._repository.remote_follower_inboxes(reblogger.id))
        if exclude is not None and exclude.preferred_inbox_url:
            inboxes.discard(exclude.preferred_inbox_url)
        logger.debug(
            "Computed %d remote inboxes for followers of %s", len(inboxes), reblogger.uri
        )
        return frozenset(inboxes)
