"""Reconcile command: bring one wishlist's FUNDING.yml link into place."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..config import Settings
from ..errors import MalformedInputError, PreconditionFailedError, ReconciliationError
from ..github.client import GitHubAuthError, GitHubClient
from ..models import Outcome, OutcomeStatus
from ..reconcile import ReconciliationDriver, classify_error, default_shapes
from ..repositories import ApprovedRequestSource, SqlRequestRepository
from ..services import (
    FailureSink,
    GitHubIssueFailureSink,
    LoggingFailureSink,
    refresh_cache,
)
from .output import error, header, info, success, write_action_outputs

logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> GitHubClient:
    """Create a GitHub client from settings, env or gh CLI."""
    if settings.github_token:
        return GitHubClient(settings.github_token, settings.github_api_url)
    return GitHubClient.from_environment(settings.github_api_url)


def build_failure_sink(settings: Settings, client: GitHubClient) -> FailureSink:
    """Report to a home repository when configured, else to the log.

    Raises:
        MalformedInputError: failure_repository is not "owner/repo"
    """
    if settings.failure_repository:
        try:
            return GitHubIssueFailureSink(client, settings.failure_repository)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e
    return LoggingFailureSink()


def _report_failure(
    sink: FailureSink | None, request_id: int, outcome: Outcome, origin_url: str | None
) -> None:
    if sink is None:
        return
    try:
        sink.report(request_id, outcome, origin_url)
    except Exception:
        logger.exception("Failure sink raised while reporting wishlist %d", request_id)


def reconcile_request(
    request_id: int,
    settings: Settings,
    client: GitHubClient,
    source: ApprovedRequestSource,
    failure_sink: FailureSink | None = None,
    dry_run: bool = False,
    origin_url: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Outcome:
    """Load the approved request and run the reconciliation driver.

    Precondition and lookup failures are returned as ``Outcome.failed`` and
    reported to the failure sink like any pipeline failure.
    """
    if request_id <= 0:
        outcome = Outcome.failed(
            PreconditionFailedError.kind, f"Invalid wishlist ID: {request_id}"
        )
        _report_failure(failure_sink, request_id, outcome, origin_url)
        return outcome

    try:
        request = source.get_approved(request_id)
    except Exception as e:
        kind = classify_error(e)
        logger.error("Could not load wishlist %d (%s): %s", request_id, kind.value, e)
        outcome = Outcome.failed(kind, str(e))
        _report_failure(failure_sink, request_id, outcome, origin_url)
        return outcome

    logger.info("Wishlist URL to add: %s", request.canonical_url)
    driver = ReconciliationDriver(
        client,
        shapes=default_shapes(settings.fulfill_base_url, settings.tracker_repository),
        fork_ready_delay=settings.fork_ready_delay,
        sleep=sleep,
        failure_sink=failure_sink,
    )
    return driver.run(request, dry_run=dry_run, origin_url=origin_url)


def run_reconcile(
    request_id: int,
    settings: Settings,
    dry_run: bool = False,
    refresh: bool = True,
    origin_url: str | None = None,
) -> int:
    """Reconcile one wishlist and report the outcome.

    Args:
        request_id: Wishlist ID
        settings: Application settings
        dry_run: Stop before any write
        refresh: Refresh the wishlist cache after a successful run
        origin_url: Link to the originating record, included in error reports

    Returns:
        Exit code (0 unless the run failed)
    """
    if not settings.database_url:
        error("No database URL configured")
        info("Pass --database-url or set FUNDSYNC_DATABASE_URL")
        return 1

    header(f"Processing wishlist ID: {request_id}")
    try:
        client = build_client(settings)
    except GitHubAuthError as e:
        error(f"GitHub authentication failed: {e}")
        return 1

    with client:
        failure_sink: FailureSink = LoggingFailureSink()
        try:
            failure_sink = build_failure_sink(settings, client)
            source = SqlRequestRepository.from_url(
                settings.database_url, settings.fulfill_base_url
            )
        except ReconciliationError as e:
            logger.error("Invalid configuration (%s): %s", e.kind.value, e)
            outcome = Outcome.failed(e.kind, str(e))
            _report_failure(failure_sink, request_id, outcome, origin_url)
        else:
            outcome = reconcile_request(
                request_id,
                settings,
                client,
                source,
                failure_sink=failure_sink,
                dry_run=dry_run,
                origin_url=origin_url,
            )

        if outcome.is_success and refresh and settings.cache_url and not dry_run:
            refresh_cache(settings.cache_url)

    _display_outcome(outcome)
    write_action_outputs(
        {
            "status": outcome.action_status,
            "pr-url": outcome.pr_url or outcome.reference or "",
        }
    )
    return 1 if outcome.status == OutcomeStatus.FAILED else 0


def _display_outcome(outcome: Outcome) -> None:
    """Print a one-line summary of the outcome."""
    print()
    if outcome.status == OutcomeStatus.CREATED:
        success(f"Created PR: {outcome.pr_url}")
    elif outcome.status == OutcomeStatus.ALREADY_SATISFIED:
        success(f"Already satisfied: {outcome.reference}")
    elif outcome.status == OutcomeStatus.SKIPPED:
        info(f"Skipped: {outcome.reason}")
    else:
        kind = outcome.error_kind.value if outcome.error_kind else "unknown"
        error(f"Failed ({kind}): {outcome.detail}")
