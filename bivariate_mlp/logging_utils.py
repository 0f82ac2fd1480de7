# bivariate_mlp/logging_utils.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL: str = str(os.environ.get("LOG_LEVEL", "INFO"))


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Route package logs to stderr (and optionally a file) with a timestamped format."""
    name = str(level or DEFAULT_LOG_LEVEL).upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    handlers = [logging.StreamHandler()]
    if log_file:
        p = Path(log_file)
        p.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(p, encoding="utf-8"))

    logging.basicConfig(level=numeric, format=LOG_FORMAT, handlers=handlers, force=True)

    # Third-party libraries are noisy at DEBUG.
    for noisy in ("matplotlib", "PIL"):
        logging.getLogger(noisy).setLevel(max(numeric, logging.WARNING))
