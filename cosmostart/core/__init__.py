"""Core module initialization."""

from .config_manager import (
    ConfigManager,
    CosmoStartConfig,
    ConnectionConfig,
    WorkflowConfig,
    LoggingConfig,
    StoreBackendType,
)
from .logging_config import setup_logging, log_with_context
from .metrics import StoreMetrics

__all__ = [
    "ConfigManager",
    "CosmoStartConfig",
    "ConnectionConfig",
    "WorkflowConfig",
    "LoggingConfig",
    "StoreBackendType",
    "setup_logging",
    "log_with_context",
    "StoreMetrics",
]
