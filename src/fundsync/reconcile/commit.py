"""Write the reconciled FUNDING.yml to the fork branch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .content import reconcile_funding
from .resolver import DEFAULT_FUNDING_PATH, resolve_target_file

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import ForkHandle, TargetFile
    from .content import ReferenceShape

logger = logging.getLogger(__name__)

ADD_MESSAGE = "Add FUNDING.yml with wishlist link"
UPDATE_MESSAGE = "Update FUNDING.yml with wishlist link"


@dataclass
class CommitResult:
    """What the commit step did."""

    path: str
    written: bool  # False when the branch already had the reconciled content
    created: bool = False  # True when the file did not exist on the branch


def apply_funding_update(
    client: GitHubClient,
    fork: ForkHandle,
    branch: str,
    canonical_url: str,
    shapes: tuple[ReferenceShape, ...] | None = None,
    upstream_file: TargetFile | None = None,
) -> CommitResult:
    """Reconcile FUNDING.yml on ``branch`` of the fork.

    The file is resolved again against the branch right before writing: a sha
    read from upstream or from an earlier run is not valid for this branch tip.
    When the branch has no FUNDING.yml but upstream does (the fork is behind
    upstream), the upstream content is reconciled and created at the upstream
    path.

    Args:
        client: GitHub client
        fork: Fork to write to
        branch: Working branch name
        canonical_url: Wishlist link to reconcile in
        shapes: Reference shapes treated as superseded
        upstream_file: FUNDING.yml on the upstream default branch, if any

    Raises:
        GitHubConflictError: The file changed between read and write
        FundingParseError: The branch's FUNDING.yml cannot be parsed
    """
    current = resolve_target_file(client, fork.owner, fork.repository, ref=branch)
    if current is not None:
        existing, path = current.content, current.path
    elif upstream_file is not None:
        logger.info("%s missing on %s; reconciling upstream content", upstream_file.path, branch)
        existing, path = upstream_file.content, upstream_file.path
    else:
        existing, path = None, DEFAULT_FUNDING_PATH
    new_content = reconcile_funding(existing, canonical_url, shapes)

    if current is not None and new_content == existing:
        logger.info("%s on %s already reconciled; nothing to commit", path, branch)
        return CommitResult(path=path, written=False)

    client.create_or_update_file(
        fork.owner,
        fork.repository,
        path,
        message=UPDATE_MESSAGE if existing is not None else ADD_MESSAGE,
        content=new_content,
        branch=branch,
        sha=current.sha if current else None,
    )
    logger.info("Committed %s to %s:%s", path, fork.full_name, branch)
    return CommitResult(path=path, written=True, created=current is None)
