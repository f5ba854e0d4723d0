"""Pull request deduplication and creation.

Existing pull requests are matched by payload, not by branch: a PR counts
as ours when the acting identity opened it, its title names FUNDING.yml and
its body embeds the canonical URL verbatim. Every PR this module opens
embeds that URL, which is what lets later runs find it again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..github.client import GitHubConflictError
from ..models import Outcome, PullRequestRecord

if TYPE_CHECKING:
    from ..github.client import GitHubClient
    from ..models import ForkHandle, ReconciliationRequest, RepositoryRef

logger = logging.getLogger(__name__)

PR_TITLE = "Add wishlist link to FUNDING.yml"
TITLE_MARKER = "FUNDING.yml"
SEARCH_STATES: tuple[str, ...] = ("open", "closed")

PR_BODY_TEMPLATE = """\
This PR was opened at the request of @{requester} to add a wishlist link to \
your repository's sponsor button.

Wishlist issue: {canonical_url}

This will display the wishlist link in the "Sponsor this project" section of \
your repository to help wishlist sponsors find, and fulfill wishes that help \
this project.

For more information:
- Open Source Wishlist: https://oss-wishlist.com
- FUNDING.yml settings: https://docs.github.com/en/repositories/\
managing-your-repositorys-settings-and-features/customizing-your-repository/\
displaying-a-sponsor-button-in-your-repository"""


def render_pr_body(request: ReconciliationRequest) -> str:
    """Render the PR body; it always embeds the canonical URL verbatim."""
    return PR_BODY_TEMPLATE.format(
        requester=request.requester_handle or "maintainer",
        canonical_url=request.canonical_url,
    )


def is_matching_pull_request(
    pr: PullRequestRecord, acting_identity: str, canonical_url: str
) -> bool:
    """Whether ``pr`` is a FUNDING.yml PR by us carrying this canonical URL."""
    return (
        pr.author == acting_identity
        and TITLE_MARKER in pr.title
        and canonical_url in pr.body
    )


def find_existing_pull_request(
    client: GitHubClient,
    upstream: RepositoryRef,
    acting_identity: str,
    canonical_url: str,
) -> PullRequestRecord | None:
    """Search open, then closed/merged PRs; the first match in API order wins."""
    for state in SEARCH_STATES:
        for data in client.iter_pulls(upstream.owner, upstream.name, state=state):
            pr = PullRequestRecord.from_api(data)
            if is_matching_pull_request(pr, acting_identity, canonical_url):
                logger.info("Found existing %s PR with same wishlist URL: %s", pr.state, pr.url)
                return pr
    return None


def _find_open_for_head(
    client: GitHubClient, upstream: RepositoryRef, head: str
) -> PullRequestRecord | None:
    pulls = client.list_pulls(upstream.owner, upstream.name, state="open", head=head)
    if pulls:
        return PullRequestRecord.from_api(pulls[0])
    return None


def ensure_pull_request(
    client: GitHubClient,
    request: ReconciliationRequest,
    upstream: RepositoryRef,
    fork: ForkHandle,
    branch: str,
    default_branch: str,
) -> Outcome:
    """Return the PR carrying the canonical URL, opening one if none exists.

    Steps:
    1. Content search over open and closed PRs by the fork owner
    2. Create a PR from ``fork.owner:branch`` into ``default_branch``
    3. On 422, look for an open PR with that head, then repeat the content
       search; if both come up empty the conflict propagates

    Raises:
        GitHubConflictError: Creation conflicted and no matching PR was found
        GitHubClientError: Any other API failure
    """
    acting_identity = fork.owner
    existing = find_existing_pull_request(client, upstream, acting_identity, request.canonical_url)
    if existing:
        return Outcome.already_satisfied(existing.url, pr_url=existing.url)

    head = f"{fork.owner}:{branch}"
    try:
        data = client.create_pull(
            upstream.owner,
            upstream.name,
            title=PR_TITLE,
            head=head,
            base=default_branch,
            body=render_pr_body(request),
        )
    except GitHubConflictError:
        logger.info("PR might already exist for %s. Looking it up...", head)
        found = _find_open_for_head(client, upstream, head)
        if found is None:
            found = find_existing_pull_request(
                client, upstream, acting_identity, request.canonical_url
            )
        if found is None:
            raise
        logger.info("Found existing PR: %s", found.url)
        return Outcome.already_satisfied(found.url, pr_url=found.url)

    pr = PullRequestRecord.from_api(data)
    logger.info("Created PR: %s", pr.url)
    return Outcome.created(pr.url)
