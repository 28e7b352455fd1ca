import sys

from loguru import logger

from honesty_store.config import settings

_configured = False


def setup_logging(log_file: str | None = None, level: str | None = None):
    """Install the stderr and rotating file sinks once per process."""
    global _configured
    if _configured:
        return logger

    level = level or settings.LOG_LEVEL
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(log_file or settings.LOG_FILE, rotation="500 MB", level="DEBUG")

    _configured = True
    return logger
