"""
Logging configuration for the Bookmark Aggregator.

Console output always goes to stderr: stdout carries rendered bookmarks
in sync mode and the JSON-RPC channel in server mode.
"""

import logging
import sys
from pathlib import Path
from typing import IO, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a log file to write alongside the console
        stream: Console stream, defaults to stderr
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    handlers = []

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # force=True so repeated CLI invocations in one process reconfigure cleanly
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logger = logging.getLogger(__name__)
    logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    if log_file:
        logger.debug(f"Log file: {log_file}")
