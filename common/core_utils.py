# common/core_utils.py
# -*- coding: utf-8 -*-
"""
Logging setup shared by every entry point.

Provides a formatter that decorates each record with a level symbol and a
setup_logging() helper that wires console and optional file handlers onto
the root logger.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from node_config.config import SYMBOLS_DEFAULT

LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"

# Symbol key for each standard level; other levels get no symbol.
_LEVEL_SYMBOL_KEYS: Dict[int, str] = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


class SymbolFormatter(logging.Formatter):
    """
    A formatter that exposes a per-level symbol as %(symbol)s.

    Keys missing from `symbols` fall back to SYMBOLS_DEFAULT.
    """

    def __init__(
        self,
        fmt=None,
        datefmt=None,
        style="%",
        validate=True,
        symbols: Optional[Dict[str, str]] = None,
    ):
        super().__init__(fmt, datefmt, style, validate)
        self.symbols = {**SYMBOLS_DEFAULT, **(symbols or {})}

    def format(self, record):
        key = _LEVEL_SYMBOL_KEYS.get(record.levelno)
        record.symbol = self.symbols.get(key, "") if key else ""
        return super().format(record)


def _build_handlers(
    log_file: Optional[str], log_to_console: bool
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_file:
        log_file_path = Path(log_file)
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file_path, mode="a"))
        except OSError as e:
            print(
                f"Warning: cannot log to {log_file}: {e}. Continuing without a log file.",
                file=sys.stderr,
            )
    if log_to_console or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> None:
    """
    Configures the root logger.

    Parameters:
    log_level: int
        The logging level to configure. Defaults to logging.INFO.
    log_file: Optional[str]
        If given, records are also appended to this file. Its parent directory
        is created when missing.
    log_to_console: bool
        Whether to log to stdout. Console output is kept anyway when no file
        handler could be created.
    log_prefix: Optional[str]
        Optional prefix for every log line, e.g. "[NODE-SETUP]".
    symbols: Optional[Dict[str, str]]
        Level symbols for SymbolFormatter.

    Existing root handlers are closed and replaced, so calling this again
    after the settings are loaded re-applies prefix and symbols.
    """
    handlers = _build_handlers(log_file, log_to_console)

    prefix = log_prefix.strip() if log_prefix else ""
    log_format = f"{prefix} {LOG_FORMAT}" if prefix else LOG_FORMAT
    formatter = SymbolFormatter(
        fmt=log_format, datefmt=LOG_DATE_FORMAT, symbols=symbols
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for old_handler in list(root_logger.handlers):
        root_logger.removeHandler(old_handler)
        old_handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        f"Logging configured at {logging.getLevelName(log_level)}."
    )
