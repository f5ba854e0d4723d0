"""Repository layer for approved-request lookup."""

from .database import SqlRequestRepository
from .protocol import ApprovedRequestSource

__all__ = [
    "ApprovedRequestSource",
    "SqlRequestRepository",
]
