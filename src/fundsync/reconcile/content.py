"""FUNDING.yml content reconciliation.

Everything here is pure: bytes in, bytes out. The transform keeps every
unrelated sponsor entry, drops links this system wrote for other (or
older) requests, and guarantees the canonical URL appears exactly once.
"""

import re
from dataclasses import dataclass
from typing import Any

import yaml

from ..errors import FundingParseError

CUSTOM_FIELD = "custom"
DEFAULT_FULFILL_BASE_URL = "https://oss-wishlist.com/oss-wishlist-website/fullfill"
DEFAULT_TRACKER_REPOSITORY = "oss-wishlist/wishlists"


@dataclass(frozen=True)
class ReferenceShape:
    """A recognized shape of wishlist reference URL."""

    name: str
    pattern: re.Pattern[str]

    def matches(self, entry: str) -> bool:
        return self.pattern.search(entry) is not None


def tracker_issue_shape(tracker_repository: str) -> ReferenceShape:
    """Direct link to the wishlist's issue in the tracker repository."""
    return ReferenceShape(
        "tracker-issue",
        re.compile(rf"https://github\.com/{re.escape(tracker_repository)}/issues/\d+"),
    )


def fulfill_link_shape(fulfill_base_url: str) -> ReferenceShape:
    """Current-format fulfill link, for any request id."""
    return ReferenceShape(
        "fulfill-link",
        re.compile(rf"{re.escape(fulfill_base_url.rstrip('?'))}\?issue=\d+"),
    )


LEGACY_FULFILL_SHAPE = ReferenceShape(
    "legacy-fulfill-link",
    re.compile(r"https://oss-wishlist\.com/(oss-wishlist/)?fullfill?\?issue=\d+"),
)


def default_shapes(
    fulfill_base_url: str = DEFAULT_FULFILL_BASE_URL,
    tracker_repository: str = DEFAULT_TRACKER_REPOSITORY,
) -> tuple[ReferenceShape, ...]:
    """Return every reference shape this system has ever written."""
    return (
        tracker_issue_shape(tracker_repository),
        LEGACY_FULFILL_SHAPE,
        fulfill_link_shape(fulfill_base_url),
    )


def canonical_url_for(request_id: int, fulfill_base_url: str = DEFAULT_FULFILL_BASE_URL) -> str:
    """Build the canonical fulfill URL for a request."""
    return f"{fulfill_base_url.rstrip('?')}?issue={request_id}"


def is_reference_url(entry: Any, shapes: tuple[ReferenceShape, ...]) -> bool:
    """Whether an entry is a wishlist reference link of any known shape."""
    return isinstance(entry, str) and any(shape.matches(entry) for shape in shapes)


def render_new_funding(canonical_url: str) -> bytes:
    """Minimal FUNDING.yml holding only the canonical URL."""
    quoted = canonical_url.replace("'", "''")
    return f"{CUSTOM_FIELD}: ['{quoted}']\n".encode()


def load_funding(content: bytes) -> dict[str, Any]:
    """Parse FUNDING.yml bytes into a mapping.

    Raises:
        FundingParseError: If the bytes are not UTF-8 YAML with a mapping root
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FundingParseError(f"FUNDING.yml is not valid UTF-8: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise FundingParseError(f"FUNDING.yml is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FundingParseError(
            f"FUNDING.yml must be a mapping, got {type(data).__name__}"
        )
    return data


def funding_entries(data: dict[str, Any]) -> list[Any]:
    """Return the custom links as a list (a scalar becomes one element)."""
    custom = data.get(CUSTOM_FIELD)
    if custom is None:
        return []
    if isinstance(custom, list):
        return list(custom)
    return [custom]


def reference_entries(content: bytes, shapes: tuple[ReferenceShape, ...]) -> list[str]:
    """Return the custom entries that are wishlist reference links."""
    return [e for e in funding_entries(load_funding(content)) if is_reference_url(e, shapes)]


def _filter_entries(
    entries: list[Any], canonical_url: str, shapes: tuple[ReferenceShape, ...]
) -> list[Any]:
    kept: list[Any] = []
    seen_canonical = False
    for entry in entries:
        if entry == canonical_url:
            if not seen_canonical:
                kept.append(entry)
            seen_canonical = True
        elif not is_reference_url(entry, shapes):
            kept.append(entry)
    if not seen_canonical:
        kept.append(canonical_url)
    return kept


def reconcile_funding(
    existing: bytes | None,
    canonical_url: str,
    shapes: tuple[ReferenceShape, ...] | None = None,
) -> bytes:
    """Produce FUNDING.yml content holding the canonical URL exactly once.

    Args:
        existing: Current file bytes, or None if there is no file
        canonical_url: The wishlist link that must survive
        shapes: Reference shapes to treat as superseded (default: default_shapes())

    Returns:
        New content. When no entry needs to change, ``existing`` is returned
        unchanged byte-for-byte, so the call is idempotent.

    Raises:
        FundingParseError: If existing content cannot be parsed
    """
    if existing is None:
        return render_new_funding(canonical_url)

    if shapes is None:
        shapes = default_shapes()

    data = load_funding(existing)
    entries = funding_entries(data)
    kept = _filter_entries(entries, canonical_url, shapes)
    if kept == entries:
        return existing

    data[CUSTOM_FIELD] = kept
    return yaml.safe_dump(
        data, default_flow_style=False, sort_keys=False, allow_unicode=True
    ).encode("utf-8")
