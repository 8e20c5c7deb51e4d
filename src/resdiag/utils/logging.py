"""Provide minimal logging helpers for CLI-style output."""

from __future__ import annotations
import logging

_LOGGER = logging.getLogger("resdiag")


def configure_logging(*, level: str | int = "INFO", fmt: str = "%(message)s") -> None:
    """Configure logging once.

    Does nothing if the root logger already has handlers, so an
    application that set up logging itself keeps its configuration.

    Args:
        level (str | int): Logging level (e.g., "INFO", "DEBUG").
        fmt (str): Logging format string.
    """
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format=fmt)


def warn(msg: str) -> None:
    """Emit a warning message.

    Args:
        msg (str): Warning message text.

    Examples:
        >>> warn("Group excluded")
    """
    configure_logging()
    _LOGGER.warning(msg)


def info(msg: str) -> None:
    """Emit an informational message.

    Args:
        msg (str): Message text.

    Examples:
        >>> info("Computing residual runs tests")
    """
    configure_logging()
    _LOGGER.info(msg)
