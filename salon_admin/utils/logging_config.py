# salon_admin/utils/logging_config.py

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

PACKAGE_LOGGER_NAME = "salon_admin"

_RESERVED_LOG_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra={...}`` fields become top-level keys"""

    def __init__(self, app_name=None, app_version=None):
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.app_name:
            payload["app"] = self.app_name
        if self.app_version:
            payload["version"] = self.app_version
        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_FIELDS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def _build_formatter(app):
    if str(app.config.get("LOG_FORMAT", "json")).lower() == "json":
        return JSONFormatter(app.config.get("APP_NAME"), app.config.get("APP_VERSION"))
    return logging.Formatter(TEXT_FORMAT)


def _build_handlers(app, level, formatter):
    handlers = []
    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, "salon_admin.log"),
                maxBytes=int(app.config.get("LOG_FILE_MAX_BYTES", 10485760)),
                backupCount=int(app.config.get("LOG_FILE_BACKUP_COUNT", 10)),
                encoding="utf-8",
            )
        except OSError as e:
            # A read-only filesystem should not stop the app from booting
            sys.stderr.write(f"File logging disabled, could not open {log_dir}: {e}\n")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
    return handlers


def setup_logging(app):
    """
    Configure ``app.logger`` and the ``salon_admin`` package logger.

    Safe to call more than once; previous handlers installed here are closed
    and replaced so tests can re-run it after changing config.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _build_formatter(app)
    handlers = _build_handlers(app, level, formatter)

    for logger in (app.logger, logging.getLogger(PACKAGE_LOGGER_NAME)):
        for handler in list(logger.handlers):
            if getattr(handler, "_salon_admin_handler", False):
                logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            handler._salon_admin_handler = True
            logger.addHandler(handler)
        logger.setLevel(level)
        # Without our own handlers, let records reach the root logger
        logger.propagate = not handlers

    app.logger.info(
        "Logging configured",
        extra={
            "log_level": level_name,
            "log_format": app.config.get("LOG_FORMAT"),
            "handler_count": len(handlers),
        },
    )
    return app.logger
