"""Data models."""

from .outcome import Outcome, OutcomeStatus
from .remote import (
    BranchRef,
    ForkHandle,
    PullRequestRecord,
    RepositoryRef,
    TargetFile,
)
from .request import ReconciliationRequest

__all__ = [
    "BranchRef",
    "ForkHandle",
    "Outcome",
    "OutcomeStatus",
    "PullRequestRecord",
    "ReconciliationRequest",
    "RepositoryRef",
    "TargetFile",
]
