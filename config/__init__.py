# config/__init__.py
"""
Configuration package
"""

from .base import FLASK_ENV, Config, DevelopmentConfig, ProductionConfig, TestingConfig
from .monitoring import DevelopmentMonitoringConfig, ProductionMonitoringConfig, TestingMonitoringConfig

# (app settings, logging/metrics settings) per FLASK_ENV
CONFIG_BY_ENV = {
    "development": (DevelopmentConfig, DevelopmentMonitoringConfig),
    "testing": (TestingConfig, TestingMonitoringConfig),
    "production": (ProductionConfig, ProductionMonitoringConfig),
}

__all__ = [
    "CONFIG_BY_ENV",
    "FLASK_ENV",
    "Config",
    "DevelopmentConfig",
    "ProductionConfig",
    "TestingConfig",
]
