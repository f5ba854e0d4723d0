"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from ..reconcile.content import DEFAULT_FULFILL_BASE_URL, DEFAULT_TRACKER_REPOSITORY
from ..reconcile.fork import DEFAULT_FORK_READY_DELAY


class Settings(BaseSettings):
    """Application settings."""

    github_token: str | None = Field(
        default=None,
        description="GitHub token; falls back to GITHUB_TOKEN or gh CLI",
    )

    github_api_url: str = Field(
        default="api.github.com",
        description="GitHub API host (custom for Enterprise)",
    )

    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL of the wishlist database",
    )

    fulfill_base_url: str = Field(
        default=DEFAULT_FULFILL_BASE_URL,
        description="Base of the canonical wishlist URL (?issue=<id> is appended)",
    )

    tracker_repository: str = Field(
        default=DEFAULT_TRACKER_REPOSITORY,
        description="owner/repo whose issue links are superseded by the canonical URL",
    )

    cache_url: str | None = Field(
        default=None,
        description="Wishlist cache refresh endpoint (GET)",
    )

    fork_ready_delay: float = Field(
        default=DEFAULT_FORK_READY_DELAY,
        ge=0,
        description="Seconds to wait after creating a fork",
    )

    failure_repository: str | None = Field(
        default=None,
        description="owner/repo where failed runs are reported as issues",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )

    model_config = {
        "env_prefix": "FUNDSYNC_",
    }
