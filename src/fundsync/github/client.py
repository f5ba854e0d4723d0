"""GitHub REST API client."""

from __future__ import annotations

import base64
import logging
import os
import subprocess
import time
from collections.abc import Iterator
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubClientError):
    """Authentication failed."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Resource not found."""

    pass


class GitHubConflictError(GitHubClientError):
    """Resource already exists, or the supplied version is stale (409/422)."""

    pass


class GitHubClient:
    """GitHub REST API client.

    Provides a thin wrapper around the GitHub REST API with:
    - Token authentication (from env var or gh CLI)
    - Enterprise support via custom base_url
    - Status-code mapping that keeps "not found" and "conflict" apart
      from every other failure
    """

    def __init__(self, token: str, base_url: str = "api.github.com"):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            base_url: API host (default: api.github.com, use custom for Enterprise)
        """
        self.token = token
        self.base_url = base_url
        self._api_url = f"https://{base_url}"
        self._client = httpx.Client(
            base_url=self._api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @classmethod
    def from_environment(cls, base_url: str = "api.github.com") -> GitHubClient:
        """Create a client from environment variables or gh CLI.

        Tries in order:
        1. GITHUB_TOKEN environment variable
        2. gh auth token (if gh CLI is installed and authenticated)

        Raises:
            GitHubAuthError: If no token is available
        """
        token = os.environ.get("GITHUB_TOKEN")
        if token:
            logger.debug("Using token from GITHUB_TOKEN environment variable")
            return cls(token, base_url)

        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
                check=True,
            )
            token = result.stdout.strip()
            if token:
                logger.debug("Using token from gh CLI")
                return cls(token, base_url)
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("gh CLI not available or not authenticated")

        logger.error("No GitHub token found")
        raise GitHubAuthError(
            "No GitHub token found. Either:\n"
            "  - Set GITHUB_TOKEN (or FUNDSYNC_GITHUB_TOKEN) environment variable\n"
            "  - Run 'gh auth login' to authenticate with GitHub CLI"
        )

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a REST call.

        Args:
            method: HTTP method
            path: API path, e.g. "/repos/owner/repo"
            params: Query parameters
            json: JSON request body

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            GitHubAuthError: Authentication failed
            GitHubNotFoundError: Resource not found
            GitHubConflictError: Resource exists or version is stale
            GitHubClientError: Other errors, including 403 (rate limit or permission)
        """
        op_name = f"{method} {path}"
        logger.debug("REST %s: params=%s", op_name, params)

        start_time = time.monotonic()
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("REST %s failed after %.0fms: %s", op_name, elapsed_ms, e)
            raise GitHubClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status == 401:
            logger.error("REST %s: 401 Unauthorized (%.0fms)", op_name, elapsed_ms)
            raise GitHubAuthError(
                "Authentication failed. Check your GITHUB_TOKEN.\n"
                "Required scopes: repo, workflow",
                status,
            )
        if status == 403:
            if "rate limit" in response.text.lower():
                message = "GitHub API rate limit exceeded. Try again later."
            else:
                message = f"Permission denied for {op_name}"
            logger.error("REST %s: 403 %s (%.0fms)", op_name, message, elapsed_ms)
            raise GitHubClientError(message, status)
        if status == 404:
            # Not found is often expected (missing file, missing fork), so no error log
            logger.info("REST %s: 404 Not Found (%.0fms)", op_name, elapsed_ms)
            raise GitHubNotFoundError(f"Resource not found: {path}", status)
        if status in (409, 422):
            logger.info("REST %s: %d Conflict (%.0fms)", op_name, status, elapsed_ms)
            raise GitHubConflictError(
                f"HTTP {status} for {op_name}: {_error_message(response)}", status
            )
        if status >= 400:
            logger.error("REST %s: HTTP %d (%.0fms)", op_name, status, elapsed_ms)
            raise GitHubClientError(f"HTTP {status}: {response.text}", status)

        logger.info("REST %s: %d OK (%.0fms)", op_name, status, elapsed_ms)

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GitHubClientError(f"Invalid JSON response: {e}", status) from e

    # --- Identity and repositories ---

    def get_authenticated_user(self) -> dict[str, Any]:
        """Get the user the token authenticates as."""
        return self.request("GET", "/user")

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Get repository metadata."""
        return self.request("GET", f"/repos/{owner}/{repo}")

    def create_fork(self, owner: str, repo: str) -> dict[str, Any]:
        """Fork a repository into the authenticated user's account.

        GitHub provisions forks asynchronously; the returned repository
        may not be readable for a few seconds.
        """
        return self.request("POST", f"/repos/{owner}/{repo}/forks")

    # --- Contents ---

    def get_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> dict[str, Any]:
        """Get a file's metadata and content.

        The returned dict carries the decoded bytes under ``decoded_content``.
        """
        params = {"ref": ref} if ref else None
        data = self.request("GET", f"/repos/{owner}/{repo}/contents/{path}", params=params)
        if isinstance(data, dict) and data.get("encoding") == "base64":
            data["decoded_content"] = base64.b64decode(data.get("content") or "")
        return data

    def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: bytes,
        branch: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create a file, or update it when ``sha`` names its current blob."""
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        return self.request("PUT", f"/repos/{owner}/{repo}/contents/{path}", json=body)

    # --- Git references ---

    def get_ref(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        """Get a reference such as ``heads/main``."""
        return self.request("GET", f"/repos/{owner}/{repo}/git/ref/{ref}")

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> dict[str, Any]:
        """Create a fully-qualified reference (``refs/heads/<name>``)."""
        return self.request(
            "POST", f"/repos/{owner}/{repo}/git/refs", json={"ref": ref, "sha": sha}
        )

    # --- Pull requests and issues ---

    def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        head: str | None = None,
        page: int = 1,
        per_page: int = PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """List one page of pull requests."""
        params: dict[str, Any] = {"state": state, "per_page": per_page, "page": page}
        if head:
            params["head"] = head
        return self.request("GET", f"/repos/{owner}/{repo}/pulls", params=params) or []

    def iter_pulls(
        self, owner: str, repo: str, state: str = "open", head: str | None = None
    ) -> Iterator[dict[str, Any]]:
        """Iterate over pull requests in API order, following pages lazily."""
        page = 1
        while True:
            items = self.list_pulls(owner, repo, state=state, head=head, page=page)
            yield from items
            if len(items) < PAGE_SIZE:
                return
            page += 1

    def create_pull(
        self, owner: str, repo: str, title: str, head: str, base: str, body: str
    ) -> dict[str, Any]:
        """Open a pull request."""
        return self.request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )

    def create_issue(
        self, owner: str, repo: str, title: str, body: str, labels: list[str] | None = None
    ) -> dict[str, Any]:
        """Open an issue."""
        payload: dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = labels
        return self.request("POST", f"/repos/{owner}/{repo}/issues", json=payload)


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a response body."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    message = data.get("message", "") if isinstance(data, dict) else ""
    errors = data.get("errors") if isinstance(data, dict) else None
    if errors:
        details = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
        return f"{message} ({'; '.join(details)})"
    return message or response.text
