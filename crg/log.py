from __future__ import annotations

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Send crg events to stderr; stdout is reserved for pipeline variables."""
    logger = logging.getLogger("crg")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for h in [h for h in logger.handlers if getattr(h, "_crg", False)]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-5s %(message)s", "%H:%M:%S"))
    handler._crg = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
