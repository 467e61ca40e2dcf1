"""Configuration module"""
from stackgate.config.settings import (
    AppConfig,
    DatabaseConfig,
    BrokerConfig,
    GateConfig,
    ExportConfig,
    LoggingConfig,
    get_config,
    load_config,
    reset_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "BrokerConfig",
    "GateConfig",
    "ExportConfig",
    "LoggingConfig",
    "get_config",
    "load_config",
    "reset_config",
]
