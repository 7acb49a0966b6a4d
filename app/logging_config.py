import logging
import sys

from app.config import settings

_configured = False

def setup_logging() -> None:
    """Configure root logging once; level comes from settings.log_level."""
    global _configured
    if _configured:
        return

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    _configured = True
