"""Centralized logger configuration.

Usage:
    from logger import get_logger
    logger = get_logger(__name__)

Records are routed to Textual's devtools console so they never draw over the UI.
Run with `textual console` attached to see them.
"""
import logging

from textual.logging import TextualHandler

DEFAULT_LEVEL = "INFO"


def setup_logging(level: str = DEFAULT_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[TextualHandler()],
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)
