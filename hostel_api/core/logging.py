import logging
import os
from typing import Optional

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging; falls back to LOG_LEVEL, then INFO."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if not isinstance(logging.getLevelName(resolved), int):
        resolved = "INFO"
    logging.basicConfig(level=resolved, format=_FORMAT)
    logging.getLogger("hostel_api").setLevel(resolved)
    # bcrypt and redis are chatty at DEBUG
    for noisy in ("redis", "bcrypt"):
        logging.getLogger(noisy).setLevel(max(logging.getLevelName(resolved), logging.INFO))
