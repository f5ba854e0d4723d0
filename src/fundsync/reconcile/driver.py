"""Reconciliation driver.

Runs the pipeline for one request:

    locate -> inspect upstream -> (short-circuit) -> identity -> PR search
    -> fork -> base sha -> branch -> commit -> pull request

Each stage takes what the previous stage produced, so the ordering is
carried by the data rather than by call order alone. There is no in-process
locking; concurrent runs for the same request converge because the branch
name is deterministic and existing PRs are found by content.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import ErrorKind, ReconciliationError
from ..github.client import GitHubClientError, GitHubConflictError, GitHubNotFoundError
from ..models import Outcome
from .branch import branch_name_for, ensure_branch, resolve_base_sha
from .commit import apply_funding_update
from .content import default_shapes, reconcile_funding
from .fork import DEFAULT_FORK_READY_DELAY, ensure_fork
from .locator import parse_repo_url
from .pull_request import ensure_pull_request, find_existing_pull_request
from .resolver import DEFAULT_FUNDING_PATH, resolve_target_file

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import ReconciliationRequest, RepositoryRef, TargetFile
    from .content import ReferenceShape
    from ..services.failure_sink import FailureSink

logger = logging.getLogger(__name__)


def classify_error(error: Exception) -> ErrorKind:
    """Map an exception raised by a stage to an ErrorKind."""
    if isinstance(error, ReconciliationError):
        return error.kind
    if isinstance(error, GitHubNotFoundError):
        return ErrorKind.REMOTE_NOT_FOUND
    if isinstance(error, GitHubConflictError):
        return ErrorKind.REMOTE_CONFLICT
    return ErrorKind.REMOTE_UNAVAILABLE


@dataclass(frozen=True)
class UpstreamState:
    """What the upstream default branch looks like before any write."""

    repo: RepositoryRef
    default_branch: str
    target_file: TargetFile | None
    reconciled: bytes

    @property
    def already_reconciled(self) -> bool:
        """True when reconciling would leave the file byte-identical."""
        return self.target_file is not None and self.reconciled == self.target_file.content

    @property
    def file_path(self) -> str:
        return self.target_file.path if self.target_file else DEFAULT_FUNDING_PATH


class ReconciliationDriver:
    """Sequences the reconciliation stages and maps failures to an Outcome."""

    def __init__(
        self,
        client: GitHubClient,
        shapes: tuple[ReferenceShape, ...] | None = None,
        fork_ready_delay: float = DEFAULT_FORK_READY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        failure_sink: FailureSink | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            client: Authenticated GitHub client
            shapes: Reference shapes superseded by the canonical URL
            fork_ready_delay: Seconds to wait after creating a fork
            sleep: Sleep function (injectable for tests)
            failure_sink: Receives every failed outcome
        """
        self._client = client
        self._shapes = shapes if shapes is not None else default_shapes()
        self._fork_ready_delay = fork_ready_delay
        self._sleep = sleep
        self._failure_sink = failure_sink

    def run(
        self,
        request: ReconciliationRequest,
        dry_run: bool = False,
        origin_url: str | None = None,
    ) -> Outcome:
        """Reconcile FUNDING.yml for one request.

        Never raises for remote or input failures; those come back as
        ``Outcome.failed`` and are handed to the failure sink.

        Args:
            request: Approved request
            dry_run: Stop before the first write
            origin_url: Link to the originating record, passed to the failure sink
        """
        logger.info(
            "Reconciling request %d: repo=%s url=%s",
            request.request_id,
            request.target_repository,
            request.canonical_url,
        )
        try:
            return self._run(request, dry_run)
        except (ReconciliationError, GitHubClientError) as e:
            kind = classify_error(e)
            logger.error("Request %d failed (%s): %s", request.request_id, kind.value, e)
            outcome = Outcome.failed(kind, str(e))
        except Exception as e:
            logger.exception("Request %d failed unexpectedly", request.request_id)
            outcome = Outcome.failed(ErrorKind.REMOTE_UNAVAILABLE, f"{type(e).__name__}: {e}")

        if self._failure_sink is not None:
            try:
                self._failure_sink.report(request.request_id, outcome, origin_url)
            except Exception:
                logger.exception(
                    "Failure sink raised while reporting request %d", request.request_id
                )
        return outcome

    def _run(self, request: ReconciliationRequest, dry_run: bool) -> Outcome:
        upstream = self.inspect_upstream(request)
        if upstream.already_reconciled:
            reference = f"{upstream.repo.full_name}:{upstream.file_path}"
            logger.info("Wishlist URL already present in %s. Skipping PR creation.", reference)
            return Outcome.already_satisfied(reference)

        acting_identity = self.acting_identity()
        existing = find_existing_pull_request(
            self._client, upstream.repo, acting_identity, request.canonical_url
        )
        if existing:
            return Outcome.already_satisfied(existing.url, pr_url=existing.url)

        if dry_run:
            logger.info("Dry run: would open PR against %s", upstream.repo.full_name)
            return Outcome.skipped(
                f"dry run: {upstream.file_path} in {upstream.repo.full_name} needs update"
            )

        fork = ensure_fork(
            self._client,
            upstream.repo,
            acting_identity,
            delay=self._fork_ready_delay,
            sleep=self._sleep,
        )
        base_sha = resolve_base_sha(self._client, fork, upstream.default_branch)
        branch = ensure_branch(
            self._client, fork, branch_name_for(request.request_id), base_sha
        )
        apply_funding_update(
            self._client,
            fork,
            branch.name,
            request.canonical_url,
            shapes=self._shapes,
            upstream_file=upstream.target_file,
        )
        return ensure_pull_request(
            self._client, request, upstream.repo, fork, branch.name, upstream.default_branch
        )

    def inspect_upstream(self, request: ReconciliationRequest) -> UpstreamState:
        """Read-only stage: locate the repo and dry-reconcile its FUNDING.yml."""
        repo = parse_repo_url(request.target_repository)
        logger.info("Target repository: %s", repo.full_name)

        metadata = self._client.get_repository(repo.owner, repo.name)
        default_branch = metadata["default_branch"]

        target_file = resolve_target_file(self._client, repo.owner, repo.name)
        reconciled = reconcile_funding(
            target_file.content if target_file else None,
            request.canonical_url,
            self._shapes,
        )
        return UpstreamState(
            repo=repo,
            default_branch=default_branch,
            target_file=target_file,
            reconciled=reconciled,
        )

    def acting_identity(self) -> str:
        """Login of the authenticated user that owns forks and opens PRs."""
        login = self._client.get_authenticated_user()["login"]
        logger.info("Authenticated as: %s", login)
        return login
