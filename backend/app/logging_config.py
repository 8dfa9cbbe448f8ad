import logging

from .config import LOG_LEVEL


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once.

    Uses a simple format including time, level, module and message. Calling it
    again (uvicorn reload, tests) is a no-op when a handler is already attached.
    """
    if logging.getLogger().handlers:
        return
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=(level or LOG_LEVEL), format=fmt)
