"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("ultralytics", "uvicorn.access", "multipart")


def setup_logging(log_path: str, log_level: str) -> None:
    """Log to `log_path` and the console at `log_level` (e.g. "INFO")."""
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
