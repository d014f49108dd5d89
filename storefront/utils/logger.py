"""Storefront logger: one configured root "storefront" logger, child loggers per area."""
import logging
import os
from typing import Optional

logger = logging.getLogger("storefront")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(h)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


def get_logger(area: Optional[str] = None) -> logging.Logger:
    """Return the storefront logger, or a child such as ``storefront.access``."""
    if area:
        return logger.getChild(area)
    return logger
