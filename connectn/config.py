"""Settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

# Smallest board side the engine supports
MIN_SIDE = 6


def env_int(name: str, default: int, minimum: int) -> int:
    """Read an integer setting, raising it to ``minimum`` when set too low."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    return max(value, minimum)


LOG_LEVEL = os.getenv("CONNECTN_LOG_LEVEL", "WARNING")
MAX_WIDTH = env_int("CONNECTN_MAX_WIDTH", 16, MIN_SIDE)
MAX_HEIGHT = env_int("CONNECTN_MAX_HEIGHT", 16, MIN_SIDE)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Set the level of the package logger and give it a stream handler once."""
    logger = logging.getLogger("connectn")
    logger.setLevel((level or LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
