from __future__ import annotations

import logging

APP_LOGGER = "lecturelens"


def get_logger(name: str) -> logging.Logger:
    """Create or reuse a logger under the app namespace with a simple stdout handler."""
    root = logging.getLogger(APP_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    if name == APP_LOGGER:
        return root
    return root.getChild(name)


def configure_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        level = level.upper()
    get_logger(APP_LOGGER).setLevel(level)


__all__ = ["get_logger", "configure_logging"]
