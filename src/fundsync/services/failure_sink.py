"""Where failed runs are reported."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from ..github.client import GitHubClientError

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import Outcome

logger = logging.getLogger(__name__)

ERROR_LABELS = ["error", "automated"]


class FailureSink(Protocol):
    """Receives failed outcomes. Implementations must not raise."""

    def report(self, request_id: int, outcome: Outcome, origin_url: str | None = None) -> None:
        ...


class LoggingFailureSink:
    """Report failures to the log only."""

    def report(self, request_id: int, outcome: Outcome, origin_url: str | None = None) -> None:
        logger.error(
            "Wishlist %d failed (%s): %s",
            request_id,
            outcome.error_kind.value if outcome.error_kind else "unknown",
            outcome.detail,
        )


def render_error_report(request_id: int, outcome: Outcome, origin_url: str | None) -> str:
    """Markdown body for an error report issue."""
    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    kind = outcome.error_kind.value if outcome.error_kind else "unknown"
    lines = ["**Error processing wishlist**", ""]
    if origin_url:
        lines += [f"**Original Issue:** {origin_url}", ""]
    lines += [
        "**Error Message:**",
        "```",
        outcome.detail or "",
        "```",
        "",
        "**Context:**",
        f"- Wishlist ID: #{request_id}",
        f"- Error kind: {kind}",
        f"- Timestamp: {timestamp}",
    ]
    return "\n".join(lines) + "\n"


class GitHubIssueFailureSink:
    """Open an issue in a home repository for each failed run."""

    def __init__(self, client: GitHubClient, repository: str) -> None:
        """
        Args:
            client: GitHub client used to open the issue
            repository: "owner/repo" that collects error reports
        """
        owner, _, name = repository.partition("/")
        if not owner or not name:
            raise ValueError(f"Invalid failure repository: {repository!r}")
        self._client = client
        self._owner = owner
        self._name = name

    def report(self, request_id: int, outcome: Outcome, origin_url: str | None = None) -> None:
        try:
            issue = self._client.create_issue(
                self._owner,
                self._name,
                title=f"Error processing wishlist #{request_id}",
                body=render_error_report(request_id, outcome, origin_url),
                labels=ERROR_LABELS,
            )
        except GitHubClientError as e:
            logger.error("Failed to report error: %s", e)
            return
        logger.error("Reported error to %s/%s: %s", self._owner, self._name, issue.get("html_url"))
