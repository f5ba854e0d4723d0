"""Fork acquisition for the acting identity."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..github.client import GitHubConflictError, GitHubNotFoundError
from ..models import ForkHandle

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import RepositoryRef

logger = logging.getLogger(__name__)

DEFAULT_FORK_READY_DELAY = 5.0


def ensure_fork(
    client: GitHubClient,
    upstream: RepositoryRef,
    acting_identity: str,
    delay: float = DEFAULT_FORK_READY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> ForkHandle:
    """Return the acting identity's fork of ``upstream``, creating it if missing.

    An existing repository is returned immediately. After a create the call
    blocks for ``delay`` seconds because GitHub provisions forks
    asynchronously; readiness is not verified beyond that.

    Raises:
        GitHubClientError: Any lookup failure other than 404, or a failed create
    """
    try:
        existing = client.get_repository(acting_identity, upstream.name)
    except GitHubNotFoundError:
        existing = None

    if existing is not None:
        if not existing.get("fork", True):
            logger.warning(
                "%s/%s exists but is not a fork of %s",
                acting_identity,
                upstream.name,
                upstream.full_name,
            )
        logger.info("Found existing fork: %s/%s", acting_identity, upstream.name)
        return ForkHandle(owner=acting_identity, repository=upstream.name)

    logger.info("Creating fork of %s...", upstream.full_name)
    owner, name = acting_identity, upstream.name
    try:
        created = client.create_fork(upstream.owner, upstream.name)
    except GitHubConflictError:
        # Another run created it between our lookup and create
        logger.info("Fork of %s already being created; reusing", upstream.full_name)
    else:
        if created:
            owner = (created.get("owner") or {}).get("login", owner)
            name = created.get("name", name)

    logger.info("Waiting %.1fs for fork to be ready...", delay)
    sleep(delay)
    return ForkHandle(owner=owner, repository=name)
