"""Logger hierarchy and handler setup for llmwrite."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "llmwrite"
CONSOLE_FORMAT = "[llmwrite] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``llmwrite.<name>``, or the package root logger when no name is given."""
    return logging.getLogger(ROOT_LOGGER if not name else f"{ROOT_LOGGER}.{name}")


def _with_format(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route llmwrite records to stderr, and to ``log_file`` when one is given.

    Calling this again replaces the handlers from the previous call. Records do
    not propagate to the root logger, so host applications keep their own
    logging configuration.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = get_logger()
    root.setLevel(level)
    root.propagate = False
    for stale in list(root.handlers):
        root.removeHandler(stale)
        stale.close()

    root.addHandler(_with_format(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(_with_format(logging.FileHandler(log_path, encoding="utf-8"), level, FILE_FORMAT))
    return root


__all__ = ["configure_logging", "get_logger"]
