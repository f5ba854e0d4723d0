"""Approved request record consumed by a reconciliation run."""

from pydantic import BaseModel, ConfigDict, Field


class ReconciliationRequest(BaseModel):
    """An approved wishlist request, immutable for the duration of one run."""

    model_config = ConfigDict(frozen=True)

    request_id: int = Field(..., gt=0)  # Wishlist ID (also the tracker issue number)
    target_repository: str = Field(..., min_length=1)  # e.g. "https://github.com/org/repo"
    canonical_url: str = Field(..., min_length=1)  # "<fulfill-base-url>?issue=<id>"
    requester_handle: str = ""  # Maintainer who asked for the link
