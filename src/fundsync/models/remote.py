"""Transient views of remote GitHub state.

None of these are cached across runs; every run re-derives them from the
API, which stays the source of truth.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class RepositoryRef(BaseModel):
    """An (owner, name) repository identity."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        """Return "owner/name"."""
        return f"{self.owner}/{self.name}"


class ForkHandle(BaseModel):
    """The acting identity's copy of the upstream repository."""

    model_config = ConfigDict(frozen=True)

    owner: str  # Acting identity login
    repository: str  # Fork name (same as upstream name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"


class TargetFile(BaseModel):
    """A FUNDING.yml as it exists at one ref of one repository."""

    path: str
    content: bytes | None = None
    sha: str | None = None  # Blob sha; the version token required to update the file


class BranchRef(BaseModel):
    """The per-request working branch in the fork."""

    name: str
    base_sha: str
    created: bool = True  # False when an existing branch was reused


PullRequestState = Literal["open", "closed", "merged"]


class PullRequestRecord(BaseModel):
    """A pull request as returned by the list/create endpoints."""

    number: int
    url: str
    state: PullRequestState
    author: str
    title: str
    body: str = ""
    head_ref: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequestRecord":
        """Build a record from a REST pull request payload."""
        state: PullRequestState = "open" if data.get("state") == "open" else "closed"
        if data.get("merged_at"):
            state = "merged"
        return cls(
            number=data["number"],
            url=data["html_url"],
            state=state,
            author=(data.get("user") or {}).get("login", ""),
            title=data.get("title") or "",
            body=data.get("body") or "",
            head_ref=(data.get("head") or {}).get("ref"),
        )
