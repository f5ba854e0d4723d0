"""CLI entry point for fundsync."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="fundsync",
        description="Open a pull request adding a wishlist link to a repository's FUNDING.yml",
    )
    parser.add_argument(
        "request_id",
        type=int,
        help="Approved wishlist ID",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Inspect the target repository but do not fork, commit or open a PR",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Wishlist database URL (default: FUNDSYNC_DATABASE_URL)",
    )
    parser.add_argument(
        "--cache-url",
        default=None,
        help="Wishlist cache refresh endpoint (default: FUNDSYNC_CACHE_URL)",
    )
    parser.add_argument(
        "--no-cache-refresh",
        action="store_true",
        help="Skip the cache refresh after a successful run",
    )
    parser.add_argument(
        "--origin-url",
        default=None,
        help="Link to the originating issue, included in error reports",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.database_url:
        settings_kwargs["database_url"] = args.database_url
    if args.cache_url:
        settings_kwargs["cache_url"] = args.cache_url
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    setup_logging(settings.verbose, settings.log_file)

    from .cli.reconcile import run_reconcile

    exit_code = run_reconcile(
        args.request_id,
        settings,
        dry_run=args.dry_run,
        refresh=not args.no_cache_refresh,
        origin_url=args.origin_url,
    )
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
