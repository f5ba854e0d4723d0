"""Downstream wishlist cache refresh."""

import logging

import httpx

logger = logging.getLogger(__name__)


def refresh_cache(cache_url: str, client: httpx.Client | None = None) -> bool:
    """Ask the wishlist site to refresh its cache.

    Fire-and-forget: failures are logged as warnings and never raised.

    Returns:
        True if the endpoint answered with a 2xx status
    """
    logger.info("Refreshing wishlist cache...")
    try:
        if client is not None:
            response = client.get(cache_url)
        else:
            response = httpx.get(cache_url, timeout=10.0)
    except httpx.HTTPError as e:
        logger.warning("Failed to refresh wishlist cache: %s", e)
        return False

    if response.is_success:
        logger.info("Wishlist cache refreshed successfully")
        return True
    logger.warning(
        "Failed to refresh cache: %s %s", response.status_code, response.reason_phrase
    )
    return False
