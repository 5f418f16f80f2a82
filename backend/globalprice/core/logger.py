import logging
import os
import sys

_configured = False


def setup_logging(level: str | None = None) -> None:
    """
    Attaches the stdout handler once. An explicit `level` always applies,
    so the app factory can override the import-time default.
    """
    global _configured

    root = logging.getLogger()
    if level:
        root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if _configured:
        return

    if not level:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, log_level, logging.INFO))

    # Avoid duplicate handlers (uvicorn installs its own)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
