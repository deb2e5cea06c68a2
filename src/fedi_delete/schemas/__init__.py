from .activity import DeleteActivity, DeleteActivityResponse

__all__ = [
    "DeleteActivity",
    "DeleteActivityResponse",
]
