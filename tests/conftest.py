"""Shared fixtures: an in-memory stand-in for the GitHub REST API."""

import base64
import hashlib
from typing import Any

import pytest

from fundsync.github.client import GitHubConflictError, GitHubNotFoundError
from fundsync.models import ReconciliationRequest
from fundsync.reconcile import default_shapes

BOT = "wishlist-bot"
FULFILL_BASE = "https://x/fullfill"
TRACKER = "org/repo"

WRITE_CALLS = {"create_fork", "create_ref", "create_or_update_file", "create_pull", "create_issue"}


def _blob_sha(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


class FakeGitHub:
    """Stateful fake exposing the GitHubClient methods the pipeline uses.

    Repositories are keyed by "owner/name". Files live per branch. Every
    call is recorded in ``calls`` so tests can assert on writes.
    """

    def __init__(self, login: str = BOT) -> None:
        self.login = login
        self.repos: dict[str, dict[str, Any]] = {}
        self.refs: dict[tuple[str, str], str] = {}
        self.files: dict[tuple[str, str, str], bytes] = {}
        self.pulls: dict[str, list[dict[str, Any]]] = {}
        self.issues: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.fork_conflict = False
        self.before_create_pull = None

    # --- Test setup helpers ---

    def add_repo(
        self, full_name: str, default_branch: str = "main", fork: bool = False, sha: str = "base1"
    ) -> None:
        self.repos[full_name] = {"default_branch": default_branch, "fork": fork}
        self.refs[(full_name, f"heads/{default_branch}")] = sha

    def add_file(
        self, full_name: str, path: str, content: bytes, branch: str | None = None
    ) -> None:
        branch = branch or self.repos[full_name]["default_branch"]
        self.files[(full_name, branch, path)] = content

    def add_pull(
        self,
        full_name: str,
        user: str,
        title: str,
        body: str,
        state: str = "open",
        merged: bool = False,
        head_label: str | None = None,
    ) -> dict[str, Any]:
        pulls = self.pulls.setdefault(full_name, [])
        number = len(pulls) + 1
        pr = {
            "number": number,
            "html_url": f"https://github.com/{full_name}/pull/{number}",
            "state": state,
            "merged_at": "2025-01-01T00:00:00Z" if merged else None,
            "user": {"login": user},
            "title": title,
            "body": body,
            "head": {"label": head_label or f"{user}:branch-{number}", "ref": f"branch-{number}"},
        }
        pulls.append(pr)
        return pr

    @property
    def writes(self) -> list[str]:
        return [c for c in self.calls if c in WRITE_CALLS]

    def file(self, full_name: str, branch: str, path: str) -> bytes | None:
        return self.files.get((full_name, branch, path))

    # --- GitHubClient surface ---

    def get_authenticated_user(self) -> dict[str, Any]:
        self.calls.append("get_authenticated_user")
        return {"login": self.login}

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        self.calls.append("get_repository")
        full_name = f"{owner}/{repo}"
        if full_name not in self.repos:
            raise GitHubNotFoundError(f"Resource not found: /repos/{full_name}", 404)
        return {"full_name": full_name, **self.repos[full_name]}

    def create_fork(self, owner: str, repo: str) -> dict[str, Any]:
        self.calls.append("create_fork")
        if self.fork_conflict:
            raise GitHubConflictError("HTTP 422: fork already exists", 422)
        upstream = f"{owner}/{repo}"
        fork = f"{self.login}/{repo}"
        if fork not in self.repos:
            branch = self.repos[upstream]["default_branch"]
            self.add_repo(fork, branch, fork=True, sha=self.refs[(upstream, f"heads/{branch}")])
            for (name, file_branch, path), content in list(self.files.items()):
                if name == upstream and file_branch == branch:
                    self.files[(fork, branch, path)] = content
        return {"owner": {"login": self.login}, "name": repo, "fork": True}

    def get_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> dict[str, Any]:
        self.calls.append("get_content")
        full_name = f"{owner}/{repo}"
        if full_name not in self.repos:
            raise GitHubNotFoundError(f"Resource not found: {full_name}", 404)
        branch = ref or self.repos[full_name]["default_branch"]
        content = self.files.get((full_name, branch, path))
        if content is None:
            raise GitHubNotFoundError(f"Resource not found: {path}", 404)
        return {
            "path": path,
            "sha": _blob_sha(content),
            "encoding": "base64",
            "content": base64.b64encode(content).decode(),
            "decoded_content": content,
        }

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
        self.calls.append("create_or_update_file")
        full_name = f"{owner}/{repo}"
        if (full_name, f"heads/{branch}") not in self.refs:
            raise GitHubNotFoundError(f"Branch not found: {branch}", 404)
        current = self.files.get((full_name, branch, path))
        if current is not None and sha is None:
            raise GitHubConflictError('HTTP 422: "sha" wasn\'t supplied', 422)
        if current is not None and sha != _blob_sha(current):
            raise GitHubConflictError(f"HTTP 409: {path} does not match {sha}", 409)
        self.files[(full_name, branch, path)] = content
        return {"content": {"path": path, "sha": _blob_sha(content)}, "message": message}

    def get_ref(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        self.calls.append("get_ref")
        sha = self.refs.get((f"{owner}/{repo}", ref))
        if sha is None:
            raise GitHubNotFoundError(f"Ref not found: {ref}", 404)
        return {"ref": f"refs/{ref}", "object": {"sha": sha}}

    def create_ref(self, owner: str, repo: str, ref: str, sha: str) -> dict[str, Any]:
        self.calls.append("create_ref")
        full_name = f"{owner}/{repo}"
        if full_name not in self.repos:
            raise GitHubNotFoundError(f"Resource not found: {full_name}", 404)
        short = ref.removeprefix("refs/")
        if (full_name, short) in self.refs:
            raise GitHubConflictError("HTTP 422: Reference already exists", 422)
        self.refs[(full_name, short)] = sha
        default = self.repos[full_name]["default_branch"]
        branch = short.removeprefix("heads/")
        for (name, file_branch, path), content in list(self.files.items()):
            if name == full_name and file_branch == default:
                self.files[(full_name, branch, path)] = content
        return {"ref": ref, "object": {"sha": sha}}

    def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        head: str | None = None,
        page: int = 1,
        per_page: int = 100,
    ) -> list[dict[str, Any]]:
        self.calls.append("list_pulls")
        pulls = [p for p in self.pulls.get(f"{owner}/{repo}", []) if p["state"] == state]
        if head:
            pulls = [p for p in pulls if p["head"]["label"] == head]
        start = (page - 1) * per_page
        return pulls[start : start + per_page]

    def iter_pulls(self, owner: str, repo: str, state: str = "open", head: str | None = None):
        yield from self.list_pulls(owner, repo, state=state, head=head, per_page=1000)

    def create_pull(
        self, owner: str, repo: str, title: str, head: str, base: str, body: str
    ) -> dict[str, Any]:
        self.calls.append("create_pull")
        if self.before_create_pull is not None:
            self.before_create_pull()
        full_name = f"{owner}/{repo}"
        for pr in self.pulls.get(full_name, []):
            if pr["state"] == "open" and pr["head"]["label"] == head:
                raise GitHubConflictError(
                    "HTTP 422: A pull request already exists for " + head, 422
                )
        return self.add_pull(full_name, self.login, title, body, head_label=head)

    def create_issue(
        self, owner: str, repo: str, title: str, body: str, labels: list[str] | None = None
    ) -> dict[str, Any]:
        self.calls.append("create_issue")
        issue = {
            "title": title,
            "body": body,
            "labels": labels or [],
            "html_url": f"https://github.com/{owner}/{repo}/issues/{len(self.issues) + 1}",
        }
        self.issues.append(issue)
        return issue


@pytest.fixture
def github() -> FakeGitHub:
    """Fake GitHub with an upstream repo "acme/widgets"."""
    fake = FakeGitHub()
    fake.add_repo("acme/widgets")
    return fake


@pytest.fixture
def shapes():
    """Reference shapes for the test fulfill base and tracker repo."""
    return default_shapes(FULFILL_BASE, TRACKER)


@pytest.fixture
def request_42() -> ReconciliationRequest:
    """Approved request 42 targeting acme/widgets."""
    return ReconciliationRequest(
        request_id=42,
        target_repository="https://github.com/acme/widgets",
        canonical_url=f"{FULFILL_BASE}?issue=42",
        requester_handle="maintainer",
    )
