"""Idempotent FUNDING.yml reconciliation pipeline."""

from .branch import branch_name_for, ensure_branch, resolve_base_sha
from .commit import CommitResult, apply_funding_update
from .content import (
    ReferenceShape,
    canonical_url_for,
    default_shapes,
    is_reference_url,
    reconcile_funding,
    reference_entries,
)
from .driver import ReconciliationDriver, UpstreamState, classify_error
from .fork import ensure_fork
from .locator import parse_repo_url
from .pull_request import ensure_pull_request, find_existing_pull_request
from .resolver import FUNDING_PATHS, resolve_target_file

__all__ = [
    "FUNDING_PATHS",
    "CommitResult",
    "ReconciliationDriver",
    "ReferenceShape",
    "UpstreamState",
    "apply_funding_update",
    "branch_name_for",
    "canonical_url_for",
    "classify_error",
    "default_shapes",
    "ensure_branch",
    "ensure_fork",
    "ensure_pull_request",
    "find_existing_pull_request",
    "is_reference_url",
    "parse_repo_url",
    "reconcile_funding",
    "reference_entries",
    "resolve_base_sha",
    "resolve_target_file",
]
