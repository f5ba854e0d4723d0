"""Locate the FUNDING.yml in a repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..github.client import GitHubNotFoundError
from ..models import TargetFile

if TYPE_CHECKING:
    from ..github.client import GitHubClient

logger = logging.getLogger(__name__)

# Probe order: the nested location GitHub documents first, root as fallback
FUNDING_PATHS: tuple[str, ...] = (".github/FUNDING.yml", "FUNDING.yml")
DEFAULT_FUNDING_PATH = FUNDING_PATHS[0]


def resolve_target_file(
    client: GitHubClient,
    owner: str,
    repo: str,
    ref: str | None = None,
) -> TargetFile | None:
    """Return the first FUNDING.yml found at ``ref`` (default branch if None).

    Only a 404 moves on to the next candidate; any other error propagates.

    Returns:
        The file with its decoded content and blob sha, or None if absent
    """
    for path in FUNDING_PATHS:
        try:
            data = client.get_content(owner, repo, path, ref=ref)
        except GitHubNotFoundError:
            continue
        logger.info("Found %s in %s/%s (ref=%s)", path, owner, repo, ref or "default")
        return TargetFile(
            path=path,
            content=data.get("decoded_content", b""),
            sha=data.get("sha"),
        )

    logger.info("No FUNDING.yml found in %s/%s (ref=%s)", owner, repo, ref or "default")
    return None
