"""Logging configuration for fundsync."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure logging based on verbosity level and optional file output.

    Args:
        verbose: Verbosity level (0=warnings only, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1 or log_file is not None:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger("fundsync")
    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Warnings (cache refresh, non-fork repos) always reach stderr
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level if verbose > 0 else logging.WARNING)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    level_name = logging.getLevelName(level)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("=" * 60)
    logger.info("fundsync starting | %s | level=%s", timestamp, level_name)
    logger.info("=" * 60)
