"""
Logging Module - Root logger configuration.
===========================================

Log records go to stderr so `cora analyze --json` output on stdout stays
machine-readable. Rich rendering is used when enabled; a plain formatter
otherwise. An optional file handler mirrors everything at the same level.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty at INFO: one line per HTTP request or model call
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "asyncio")

_configured = False


def _console_handler(use_rich: bool, log_format: str) -> logging.Handler:
    if use_rich:
        # markup off: URLs and quoted model output contain [brackets]
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(log_format))
    return handler


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO
        use_rich: Render console output with Rich
        log_file: Also write records to this file
        log_format: Format for plain and file output
        force: Replace an existing configuration (the CLI does this once
            settings are loaded)
    """
    global _configured

    if _configured and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    log_format = log_format or DEFAULT_FORMAT

    handlers = [_console_handler(use_rich, log_format)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger(__name__).debug(
        f"Logging configured: level={level}, rich={use_rich}, file={log_file}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger, applying default configuration on first use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Analysis started")
    """
    if not _configured:
        setup_logging()
    return logging.getLogger(name)
