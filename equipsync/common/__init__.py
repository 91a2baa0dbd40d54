"""
Common Utilities

Shared modules used across services:
- config.py - Configuration dataclasses and YAML loading
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
- scheduler.py - Re-arming poll timer
- state.py - Shared file-based state
"""

from .config import (
    ConnectionConfig,
    ConnectionProtocol,
    ControllerConfig,
    ControllerSettings,
    EquipmentConfig,
    DEFAULT_LATCH_MS,
    DEFAULT_POLLING_INTERVAL_MS,
    load_config_file,
    load_controller_config,
)
from .exceptions import (
    EquipSyncError,
    ConfigError,
    EquipmentError,
    EquipmentNotFoundError,
    DeviceError,
    DeviceCommunicationError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
    set_log_level,
    log_state_write,
    log_comm_status,
    log_data_record,
)
from .scheduler import RearmingTimer
from .state import SharedState

__all__ = [
    # Config
    "ConnectionConfig",
    "ConnectionProtocol",
    "ControllerConfig",
    "ControllerSettings",
    "EquipmentConfig",
    "DEFAULT_LATCH_MS",
    "DEFAULT_POLLING_INTERVAL_MS",
    "load_config_file",
    "load_controller_config",
    # Exceptions
    "EquipSyncError",
    "ConfigError",
    "EquipmentError",
    "EquipmentNotFoundError",
    "DeviceError",
    "DeviceCommunicationError",
    # Logging
    "setup_logging",
    "get_service_logger",
    "set_log_level",
    "log_state_write",
    "log_comm_status",
    "log_data_record",
    # Scheduling / state
    "RearmingTimer",
    "SharedState",
]
