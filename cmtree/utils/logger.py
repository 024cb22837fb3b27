"""
Logging for cmtree.

All loggers hang off the 'cmtree' logger: 'cmtree.tree', 'cmtree.storage.*'
and 'cmtree.cli'. Console output is colored and goes to stderr so command
output on stdout stays machine-readable. The CLI can add a plain log file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

ROOT_LOGGER = "cmtree"
LOG_FILE = "cmtree.log"

FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _console_handler(level: int) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s" + FORMAT.replace("%(message)s", "%(reset)s%(message)s"),
        datefmt=DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
    ))
    return handler


def _file_handler(log_dir: Path, level: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATE_FORMAT))
    return handler


def reset_logging():
    """Close and drop the cmtree handlers."""
    global _configured
    root_logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()
    _configured = False


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """
    (Re)configure cmtree logging.

    Args:
        level: Logging level for the cmtree loggers and their handlers
        log_dir: Directory for cmtree.log, ./logs when None
        log_to_file: Also write a plain-text log file
    """
    global _configured
    reset_logging()

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.addHandler(_console_handler(level))
    if log_to_file:
        root_logger.addHandler(_file_handler(Path(log_dir or "logs"), level))

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get the 'cmtree.<name>' logger, configuring console logging on first use"""
    if not _configured:
        setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
