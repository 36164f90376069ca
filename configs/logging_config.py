"""
Logging setup for the storefront back-office.

Every module logs through `logging.getLogger(__name__)`; this module only
wires handlers onto the root logger once per process:

  - a console handler (stderr)
  - a file handler rotating at midnight under <log_dir>/app.log
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler

from configs.settings import Settings


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(settings: Settings) -> None:
    """Install console + daily file handlers on the root logger (idempotent)."""
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(settings.log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            settings.log_dir / "app.log",
            when="midnight",
            encoding="utf-8",
        )
    except OSError as e:
        # A read-only log directory should not keep the server from starting.
        root.warning("[LOG] File logging disabled (%s): %s", settings.log_dir, e)
    else:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _configured = True
