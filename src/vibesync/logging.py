"""Logging configuration for vibesync."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

# httpx logs one INFO line per request; only shown at -vvv
HTTP_LOGGER = "httpx"
HTTP_VERBOSITY = 3


def setup_logging(
    verbose: int = 0,
    log_file: Path | None = None,
    firestore_project: str | None = None,
) -> None:
    """Configure logging based on verbosity level and optional file output.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2=DEBUG, 3+=DEBUG plus HTTP requests)
        log_file: Optional path to write logs to file
        firestore_project: Project named in the startup banner
    """
    if verbose == 0 and log_file is None:
        return

    level = logging.DEBUG if verbose >= 2 else logging.INFO

    logger = logging.getLogger("vibesync")
    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if verbose > 0:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    # Repeated calls replace rather than stack handlers
    http_logger = logging.getLogger(HTTP_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        http_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if verbose >= HTTP_VERBOSITY:
        http_logger.setLevel(logging.DEBUG)
        for handler in handlers:
            http_logger.addHandler(handler)

    level_name = "DEBUG" if verbose >= 2 else "INFO"
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("")
    logger.info("=" * 60)
    logger.info(
        "vibesync starting | %s | level=%s | firestore=%s",
        timestamp,
        level_name,
        firestore_project or "-",
    )
    logger.info("=" * 60)
