"""SQL-backed approved-request source."""

from __future__ import annotations

import logging

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, NoSuchModuleError

from ..errors import MalformedInputError, PreconditionFailedError
from ..models import ReconciliationRequest
from ..reconcile.content import DEFAULT_FULFILL_BASE_URL, canonical_url_for

logger = logging.getLogger(__name__)

metadata = MetaData()

wishlists = Table(
    "wishlists",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("repository_url", String, nullable=False),
    Column("maintainer_username", String),
    Column("funding_yml", Boolean, default=False),
    Column("approved", Boolean, default=False),
)


class SqlRequestRepository:
    """Reads approved wishlists from the ``wishlists`` table."""

    def __init__(self, engine: Engine, fulfill_base_url: str = DEFAULT_FULFILL_BASE_URL) -> None:
        self._engine = engine
        self._fulfill_base_url = fulfill_base_url

    @classmethod
    def from_url(
        cls, database_url: str, fulfill_base_url: str = DEFAULT_FULFILL_BASE_URL
    ) -> SqlRequestRepository:
        """Create a repository from a SQLAlchemy database URL.

        Plain ``postgresql://`` URLs are routed to the psycopg 3 driver.

        Raises:
            MalformedInputError: The URL cannot be parsed
            PreconditionFailedError: The URL names a driver that is not installed
        """
        if database_url.startswith("postgres://"):
            database_url = "postgresql://" + database_url.removeprefix("postgres://")
        if database_url.startswith("postgresql://"):
            database_url = "postgresql+psycopg://" + database_url.removeprefix("postgresql://")
        try:
            engine = create_engine(database_url, future=True)
        except (NoSuchModuleError, ImportError) as e:
            raise PreconditionFailedError(f"Database driver not available: {e}") from e
        except ArgumentError as e:
            raise MalformedInputError(f"Invalid database URL: {e}") from e
        return cls(engine, fulfill_base_url)

    def get_approved(self, request_id: int) -> ReconciliationRequest:
        """Fetch an approved wishlist that requested a FUNDING.yml link.

        Raises:
            PreconditionFailedError: Not found, not approved, or funding_yml off
        """
        logger.info("Fetching wishlist ID: %d", request_id)
        query = select(wishlists).where(wishlists.c.id == request_id).limit(1)
        with self._engine.connect() as conn:
            row = conn.execute(query).mappings().first()

        if row is None or not row["approved"]:
            raise PreconditionFailedError(
                f"Wishlist ID {request_id} not found or not approved in database"
            )
        if not row["funding_yml"]:
            raise PreconditionFailedError(
                f"Wishlist ID {request_id} does not have funding_yml=true"
            )

        logger.info(
            "Found wishlist: maintainer=%s, repo=%s",
            row["maintainer_username"],
            row["repository_url"],
        )
        return ReconciliationRequest(
            request_id=row["id"],
            target_repository=row["repository_url"],
            canonical_url=canonical_url_for(row["id"], self._fulfill_base_url),
            requester_handle=row["maintainer_username"] or "",
        )
