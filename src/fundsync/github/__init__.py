"""GitHub REST API integration."""

from .client import (
    GitHubAuthError,
    GitHubClient,
    GitHubClientError,
    GitHubConflictError,
    GitHubNotFoundError,
)

__all__ = [
    "GitHubAuthError",
    "GitHubClient",
    "GitHubClientError",
    "GitHubConflictError",
    "GitHubNotFoundError",
]
