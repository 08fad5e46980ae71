# badminton_shop/utils/logging.py
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone

from badminton_shop.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=_FORMAT)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


def _record_crash(path: str, summary: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "a", encoding="utf-8") as fh:
        fh.write(f"{datetime.now(timezone.utc).isoformat()} {summary}\n")


def install_crash_handler(path: str) -> None:
    """
    Uncaught exceptions are appended to a crash file and the process exits
    with status 1, so the process manager can restart the service.
    """
    logger = get_logger("badminton_shop.crash")

    def _hook(exc_type, exc, tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return

        logger.critical("Uncaught exception, shutting down", exc_info=(exc_type, exc, tb))
        _record_crash(path, f"{exc_type.__name__}: {exc}")
        sys.exit(1)

    sys.excepthook = _hook


def install_loop_crash_handler(loop: asyncio.AbstractEventLoop, path: str) -> None:
    """Same policy for errors that surface on the event loop, e.g. a task nobody awaited."""
    logger = get_logger("badminton_shop.crash")

    def _handler(loop, context):
        exc = context.get("exception")
        summary = f"{type(exc).__name__}: {exc}" if exc is not None else context.get("message", "event loop error")
        logger.critical(f"Unhandled event loop error, shutting down: {summary}", exc_info=exc)
        _record_crash(path, summary)
        sys.exit(1)

    loop.set_exception_handler(_handler)
