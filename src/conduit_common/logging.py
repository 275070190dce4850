from __future__ import annotations

import logging
import sys
from typing import Optional


def setup_logging(name: str = "conduit", level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    if logger.handlers:
        return logger
    if not level:
        logger.setLevel(logging.INFO)
    # each component logger owns its handler; don't double-print via "conduit"
    logger.propagate = False
    h = logging.StreamHandler(sys.stdout)
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)
    return logger


def set_level(level: str, prefix: str = "conduit") -> None:
    """Apply ``level`` to every logger already created under ``prefix``."""
    for name in list(logging.root.manager.loggerDict):
        if name == prefix or name.startswith(prefix + "."):
            logging.getLogger(name).setLevel(level.upper())
