"""Runtime settings for the calculator front ends.

Settings are read from environment variables so the CLI and the web API can
share one configuration:

``INTERESSI_DATABASE_URL``
    SQLAlchemy URL of the rate store (default: a local SQLite file).
``INTERESSI_MAX_EVENTS``
    Maximum number of movements accepted per calculation (default 40,
    ``0`` removes the limit).
``INTERESSI_LOG_LEVEL``
    Logging level name (default ``WARNING``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ValidationError

DEFAULT_DATABASE_URL = "sqlite:///interessi_rates.sqlite3"
DEFAULT_MAX_EVENTS = 40

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    max_events: Optional[int] = DEFAULT_MAX_EVENTS
    log_level: str = "WARNING"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    raw_max = env.get("INTERESSI_MAX_EVENTS", "").strip()
    if raw_max:
        try:
            max_events: Optional[int] = int(raw_max)
        except ValueError as exc:
            raise ValidationError(f"INTERESSI_MAX_EVENTS must be an integer; got {raw_max}") from exc
        if max_events < 0:
            raise ValidationError("INTERESSI_MAX_EVENTS cannot be negative")
        if max_events == 0:
            max_events = None
    else:
        max_events = DEFAULT_MAX_EVENTS
    return Settings(
        database_url=env.get("INTERESSI_DATABASE_URL") or DEFAULT_DATABASE_URL,
        max_events=max_events,
        log_level=(env.get("INTERESSI_LOG_LEVEL") or "WARNING").upper(),
    )


def configure_logging(level: str = "WARNING") -> None:
    """Configure the root logger once for a front end process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=LOG_FORMAT)
