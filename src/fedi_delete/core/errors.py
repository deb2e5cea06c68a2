from __future__ import annotations


class UnauthorizedError(PermissionError):
    """Raised when the activity's actor has no authority over the resolved object."""


class PersistenceError(RuntimeError):
    """Raised when the object store fails; the whole activity is safe to retry."""


class DeliverySubmissionError(RuntimeError):
    """Raised when a delivery task cannot be handed to the delivery queue."""

    def __init__(self, inbox_url: str, message: str = "delivery handoff failed") -> None:
        super().__init__(f"{message}: {inbox_url}")
        self.inbox_url = inbox_url


__all__ = ["UnauthorizedError", "PersistenceError", "DeliverySubmissionError"]
