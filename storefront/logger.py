import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that flood INFO with per-packet and per-request lines.
QUIET_LOGGERS = ("socketio", "engineio", "urllib3")

_configured = False


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _file_handler(path: str) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "3")),
        encoding="utf-8",
    )


def _handlers() -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if _flag("LOG_TO_STDOUT", "true"):
        handlers.append(logging.StreamHandler(sys.stdout))
    if _flag("LOG_TO_FILE", "false"):
        path = os.getenv("LOG_FILE", "/data/storefront.log")
        try:
            handlers.append(_file_handler(path))
        except OSError as e:
            # stdout still works; the file is optional
            sys.stderr.write(f"storefront: file logging disabled, cannot open {path}: {e}\n")
    return handlers


def setup_logging(force: bool = False) -> None:
    """
    Configure the root logger once per process from LOG_* environment
    variables. Handlers are only installed when the root has none, so an
    embedding app (or pytest's capture) keeps its own.
    """
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        for handler in _handlers():
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
