"""Logging setup shared by the API app and command line entry points."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    logger = logging.getLogger("secretsanta")
    if logger.handlers:
        return logger  # already configured
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(fmt)
    logger.addHandler(handler)
    # keep request access lines out of the way unless debugging
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return logger
