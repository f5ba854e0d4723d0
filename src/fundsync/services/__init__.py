"""Services around the reconciliation core."""

from .cache_service import refresh_cache
from .failure_sink import FailureSink, GitHubIssueFailureSink, LoggingFailureSink

__all__ = [
    "FailureSink",
    "GitHubIssueFailureSink",
    "LoggingFailureSink",
    "refresh_cache",
]
