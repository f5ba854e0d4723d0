"""Outcome of a single reconciliation run."""

from dataclasses import dataclass
from enum import Enum

from ..errors import ErrorKind


class OutcomeStatus(str, Enum):
    """Tag of an outcome."""

    CREATED = "created"  # A new pull request was opened
    ALREADY_SATISFIED = "already_satisfied"  # File or an existing PR already carries the link
    SKIPPED = "skipped"  # Nothing attempted (e.g. dry run)
    FAILED = "failed"  # Run aborted; see error_kind/detail


@dataclass(frozen=True)
class Outcome:
    """Result of a reconciliation run."""

    status: OutcomeStatus
    pr_url: str | None = None  # Pull request URL (created or discovered)
    reference: str | None = None  # What satisfied the request (PR URL or "owner/repo:path")
    reason: str | None = None  # Why the run was skipped
    error_kind: ErrorKind | None = None
    detail: str | None = None

    @classmethod
    def created(cls, pr_url: str) -> "Outcome":
        return cls(OutcomeStatus.CREATED, pr_url=pr_url, reference=pr_url)

    @classmethod
    def already_satisfied(cls, reference: str, pr_url: str | None = None) -> "Outcome":
        return cls(OutcomeStatus.ALREADY_SATISFIED, pr_url=pr_url, reference=reference)

    @classmethod
    def skipped(cls, reason: str) -> "Outcome":
        return cls(OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, kind: ErrorKind, detail: str) -> "Outcome":
        return cls(OutcomeStatus.FAILED, error_kind=kind, detail=detail)

    @property
    def is_success(self) -> bool:
        """Whether the run left the request in its desired state."""
        return self.status in (OutcomeStatus.CREATED, OutcomeStatus.ALREADY_SATISFIED)

    @property
    def action_status(self) -> str:
        """Status value written to the workflow outputs (success/skipped/error)."""
        if self.status == OutcomeStatus.FAILED:
            return "error"
        if self.pr_url:
            return "success"
        return "skipped"
