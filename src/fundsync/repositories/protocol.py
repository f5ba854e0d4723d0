"""Protocol for approved-request sources."""

from typing import Protocol

from ..models import ReconciliationRequest


class ApprovedRequestSource(Protocol):
    """Interface for looking up approved wishlist requests.

    Implementations raise PreconditionFailedError when the request does not
    exist, is not approved, or did not ask for a FUNDING.yml link. None of
    those are retryable.
    """

    def get_approved(self, request_id: int) -> ReconciliationRequest:
        """Return the approved request with this ID.

        Args:
            request_id: Wishlist ID

        Returns:
            The request, with its canonical URL already built.
        """
        ...
