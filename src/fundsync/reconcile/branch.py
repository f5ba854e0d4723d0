"""Per-request working branch in the fork."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..github.client import GitHubConflictError
from ..models import BranchRef

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import ForkHandle

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "add-wishlist-funding-"


def branch_name_for(request_id: int) -> str:
    """Deterministic branch name; the idempotency key for the whole run."""
    return f"{BRANCH_PREFIX}{request_id}"


def resolve_base_sha(client: GitHubClient, fork: ForkHandle, default_branch: str) -> str:
    """Return the tip sha of the fork's default branch."""
    data = client.get_ref(fork.owner, fork.repository, f"heads/{default_branch}")
    return data["object"]["sha"]


def ensure_branch(
    client: GitHubClient, fork: ForkHandle, name: str, base_sha: str
) -> BranchRef:
    """Create ``name`` at ``base_sha`` in the fork, reusing it if it exists.

    Reference creation is atomic on GitHub: of several concurrent callers
    exactly one succeeds and the rest get 422. Divergent content on a reused
    branch is left for the commit step to reconcile.
    """
    try:
        client.create_ref(fork.owner, fork.repository, f"refs/heads/{name}", base_sha)
    except GitHubConflictError:
        logger.info("Branch %s already exists in %s. Reusing.", name, fork.full_name)
        return BranchRef(name=name, base_sha=base_sha, created=False)

    logger.info("Created branch %s in %s", name, fork.full_name)
    return BranchRef(name=name, base_sha=base_sha, created=True)
