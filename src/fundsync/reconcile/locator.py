"""Parse repository URLs into (owner, name) identities."""

import re

from ..errors import MalformedInputError
from ..models import RepositoryRef

# github.com/<owner>/<repo>, with optional ".git", trailing path, query or fragment
_REPO_URL_RE = re.compile(
    r"github\.com[/:](?P<owner>[A-Za-z0-9_.-]+)/(?P<name>[A-Za-z0-9_.-]+?)(?:\.git)?(?:[/?#]|$)"
)


def parse_repo_url(repo_url: str) -> RepositoryRef:
    """Extract the owner and repository name from a GitHub URL.

    Example: "https://github.com/org/repo/tree/main" -> RepositoryRef("org", "repo")

    Raises:
        MalformedInputError: If the URL does not point at a GitHub repository
    """
    match = _REPO_URL_RE.search(repo_url.strip())
    if not match:
        raise MalformedInputError(f"Invalid GitHub repository URL: {repo_url}")
    return RepositoryRef(owner=match.group("owner"), name=match.group("name"))
