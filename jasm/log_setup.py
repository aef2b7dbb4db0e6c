"""
JAsm logging setup.

Console output goes through rich's RichHandler; an optional log file
captures everything at DEBUG:

    <log_file>:  2026-01-19 10:42:07 | DEBUG   | jasm.assembler | _pass1:121 | label loop -> line 2

Library modules only ever call logging.getLogger(__name__); handlers are
attached here, once, by the CLI (or a test).
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .config import LOG_NAME, LOG_FILE_FORMAT, LOG_DATE_FORMAT

__all__ = ['setup_logging', 'verbosity_to_level']


def verbosity_to_level(verbose: int, quiet: bool = False) -> int:
    """-q → ERROR, default → WARNING, -v → INFO, -vv → DEBUG."""
    if quiet:
        return logging.ERROR
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    name: str = LOG_NAME,
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_file: Optional[Union[str, Path]] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure and return the package logger.

    Calling it again returns the already-configured logger unchanged.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    # ── Console handler: WARNING+ by default ──
    if rich_console:
        ch = RichHandler(
            console=Console(stderr=True),
            level=console_level,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(fh)
        logger.debug("Log file: %s", log_path)

    return logger
