"""
Logging setup for the Wazza API.
``setup_logging(app)`` runs once per app from the factory; modules get their
logger with ``get_logger(__name__)`` and never configure handlers themselves.
"""
import logging
import logging.handlers
import os
from typing import Optional

from flask import Flask, current_app, has_app_context, has_request_context, request
from wazza.config import DEFAULT_LOG_LEVEL, DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT

ROOT_LOGGER = "wazza"
# chatty third-party loggers, kept at WARNING unless the app runs in debug
QUIET_LOGGERS = ("werkzeug", "urllib3", "retry.api")

_configured_apps: set[int] = set()


def _level(app: Flask) -> int:
    if app.debug:
        return logging.DEBUG
    level_name = str(app.config.get("LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    return logging.getLevelNamesMapping().get(level_name, logging.INFO)


def _file_handler(log_file: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,   # 10 MB
        backupCount=7,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(app: Optional[Flask] = None) -> None:
    """
    Console handler always, rotating file handler when ``LOG_FILE`` is set.
    Calling it again for the same app does nothing.
    """
    if app is None:
        if not has_app_context():
            logging.basicConfig(level=logging.INFO, format=DEFAULT_LOG_FORMAT)
            return
        app = current_app._get_current_object()
    if id(app) in _configured_apps:
        return

    level = _level(app)
    formatter = logging.Formatter(
        app.config.get("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        datefmt=app.config.get("LOG_DATEFMT", DEFAULT_LOG_DATEFMT),
    )

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    log_file = app.config.get("LOG_FILE")
    file_error = None
    if log_file:
        try:
            handlers.append(_file_handler(log_file, level, formatter))
        except OSError as exc:
            file_error, log_file = exc, None

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.addFilter(RequestFilter())
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if app.debug else max(level, logging.WARNING))

    app.logger.propagate = False
    app.logger.handlers = root.handlers[:]
    app.logger.setLevel(level)

    _configured_apps.add(id(app))
    if file_error is not None:
        app.logger.warning(f"File logging disabled: {file_error}")
    app.logger.info(
        f"Logging ready: level={logging.getLevelName(level)}, file={log_file or 'off'}"
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    logger = get_logger(__name__)
    ``wazza.processor.orders`` becomes ``wazza.orders``; inside an app
    context the app logger is the parent.
    """
    base = current_app.logger if has_app_context() else logging.getLogger(ROOT_LOGGER)
    if not name or name == "__main__":
        return base
    return base.getChild(name.rsplit(".", 1)[-1])


class RequestFilter(logging.Filter):
    """
    Decodes byte messages (names and addresses come from user input) and
    appends the request line to warnings and errors raised while serving one.
    """
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, bytes):
            record.msg = record.msg.decode("utf-8", errors="replace")
        if (record.levelno >= logging.WARNING and has_request_context()
                and not getattr(record, "_request_tagged", False)):
            record.msg = f"{record.getMessage()} [{request.method} {request.path}]"
            record.args = None
            record._request_tagged = True
        return True
