"""Centralized logging configuration."""

import logging
import sys
from typing import Optional

from fhir_gateway.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(name: str = "fhir_gateway", level: Optional[str] = None) -> logging.Logger:
    """Configure and return a stdout logger named ``name`` at ``level`` (LOG_LEVEL by default)."""
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Prevent duplicate handlers on re-import
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    logger.debug(f"Logging configured with level: {level_name}")
    return logger


logger = setup_logging()

# Writes against the FHIR store (create/update/delete). Propagates to ``logger``.
audit_logger = logger.getChild("audit")
