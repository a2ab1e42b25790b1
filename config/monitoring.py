# config/monitoring.py

import os

from .base import _coerce_bool, _coerce_int


class MonitoringConfig:
    """Log handler and Prometheus endpoint settings shared by every environment."""

    MONITORING_ENABLED = _coerce_bool(os.environ.get("MONITORING_ENABLED"), default=False)
    METRICS_ENDPOINT = os.environ.get("METRICS_ENDPOINT", "/metrics")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")  # json | text
    LOG_DIR = os.environ.get("LOG_DIR", "logs")
    LOG_FILE_MAX_BYTES = _coerce_int(os.environ.get("LOG_FILE_MAX_BYTES"), 10 * 1024 * 1024, minimum=1)
    LOG_FILE_BACKUP_COUNT = _coerce_int(os.environ.get("LOG_FILE_BACKUP_COUNT"), 10)
    ENABLE_FILE_LOGGING = _coerce_bool(os.environ.get("ENABLE_FILE_LOGGING"), default=True)
    ENABLE_CONSOLE_LOGGING = _coerce_bool(os.environ.get("ENABLE_CONSOLE_LOGGING"), default=True)

    # Stamped on every JSON log line
    APP_NAME = os.environ.get("APP_NAME", "Salon Admin")
    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")


class DevelopmentMonitoringConfig(MonitoringConfig):
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"


class ProductionMonitoringConfig(MonitoringConfig):
    """Structured file logs only; stdout belongs to the process supervisor."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"
    ENABLE_FILE_LOGGING = True
    ENABLE_CONSOLE_LOGGING = False


class TestingMonitoringConfig(MonitoringConfig):
    MONITORING_ENABLED = False
    LOG_LEVEL = "WARNING"
    LOG_FORMAT = "text"
    ENABLE_FILE_LOGGING = False
    ENABLE_CONSOLE_LOGGING = False
