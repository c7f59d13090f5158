import logging

from arena.core.config import LOG_LEVEL

_configured = False


def configure_logging():
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True
