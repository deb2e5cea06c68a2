from .errors import DeliverySubmissionError, PersistenceError, UnauthorizedError
from .settings import DeleteSettings

__all__ = [
    "DeleteSettings",
    "DeliverySubmissionError",
    "PersistenceError",
    "UnauthorizedError",
]
