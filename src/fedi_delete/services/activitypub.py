from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlsplit

from fedi_delete.models import AccountRecord, StatusRecord

ACTIVITYSTREAMS_CONTEXT = "https://www.w3.org/ns/activitystreams"
PUBLIC_COLLECTION = "https://www.w3.org/ns/activitystreams#Public"


def uri_host(uri: str) -> str:
    """Lower-cased host of a URI, empty for opaque or malformed identifiers."""
    try:
        return (urlsplit(uri).hostname or "").lower()
    except ValueError:
        return ""


@dataclass
class DeleteActivityBuilder:
    """Build the Delete documents this server re-issues for removed reblogs."""

    local_domain: str

    def account_uri(self, account: AccountRecord) -> str:
        return account.uri or f"https://{self.local_domain}/users/{account.username}"

    def status_uri(self, status: StatusRecord, account: AccountRecord) -> str:
        """Return the federation id of a status, minting one for purely local posts."""
        if status.uri:
            return status.uri
        return f"https://{self.local_domain}/users/{account.username}/statuses/{status.id}"

    def build_delete(self, status: StatusRecord, account: AccountRecord) -> Dict[str, Any]:
        object_uri = self.status_uri(status, account)
        actor_uri = self.account_uri(account)
        return {
            "@context": ACTIVITYSTREAMS_CONTEXT,
            "id": f"{object_uri}#delete",
            "type": "Delete",
            "actor": actor_uri,
            "to": [PUBLIC_COLLECTION],
            "cc": [f"{actor_uri}/followers"],
            "object": {
                "id": object_uri,
                "type": "Tombstone",
                "atomUri": object_uri,
            },
        }

    def build_account_delete(self, account: AccountRecord) -> Dict[str, Any]:
        actor_uri = self.account_uri(account)
        return {
            "@context": ACTIVITYSTREAMS_CONTEXT,
            "id": f"{actor_uri}#delete",
            "type": "Delete",
            "actor": actor_uri,
            "to": [PUBLIC_COLLECTION],
            "object": actor_uri,
        }
