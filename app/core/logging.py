import logging
import os
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the account service."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # passlib reports backend probing at WARNING on every import.
    logging.getLogger("passlib").setLevel(logging.ERROR)
