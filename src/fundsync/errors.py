"""Error kinds raised and classified by the reconciliation pipeline."""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification attached to a failed reconciliation run."""

    PRECONDITION_FAILED = "precondition_failed"  # Request missing, unapproved, or flag off
    MALFORMED_INPUT = "malformed_input"  # Repository URL or FUNDING.yml unparseable
    REMOTE_NOT_FOUND = "remote_not_found"  # Expected remote resource absent
    REMOTE_CONFLICT = "remote_conflict"  # Version mismatch or duplicate creation
    REMOTE_UNAVAILABLE = "remote_unavailable"  # Any other hosting API failure
    DOWNSTREAM_SIDE_EFFECT_FAILED = "downstream_side_effect_failed"  # Cache refresh


class ReconciliationError(Exception):
    """Base exception for reconciliation failures."""

    kind: ErrorKind = ErrorKind.REMOTE_UNAVAILABLE


class PreconditionFailedError(ReconciliationError):
    """The request cannot be processed (not found, not approved, flag off)."""

    kind = ErrorKind.PRECONDITION_FAILED


class MalformedInputError(ReconciliationError):
    """Input could not be parsed into the expected shape."""

    kind = ErrorKind.MALFORMED_INPUT


class FundingParseError(MalformedInputError):
    """Existing FUNDING.yml content is not a valid funding document."""

    pass
