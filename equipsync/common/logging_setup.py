"""
Structured Logging Setup

Consistent logging configuration across the controller.
Uses JSON format for structured logs in production.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# LogRecord attributes that are never copied into the JSON payload
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "service",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    Set up structured logging for a service.

    Args:
        service_name: Name of the service (e.g., "binding.collection")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for dev)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"equipsync.{service_name}")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Propagate so the root logger (and pytest's caplog) can observe records
    logger.propagate = True

    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Level and format come from EQUIPSYNC_LOG_LEVEL and EQUIPSYNC_LOG_FORMAT.
    """
    log_level = os.environ.get("EQUIPSYNC_LOG_LEVEL", "INFO")
    json_format = os.environ.get("EQUIPSYNC_LOG_FORMAT", "json").lower() == "json"

    logger = setup_logging(service_name, log_level, json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def set_log_level(log_level: str) -> None:
    """Apply a level to every equipsync logger created so far"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("equipsync.") and isinstance(logger, logging.Logger):
            logger.setLevel(numeric_level)
            for handler in logger.handlers:
                handler.setLevel(numeric_level)


def log_state_write(
    logger: logging.LoggerAdapter,
    equipment_name: str,
    desired: bool,
    status_code: int | None,
    success: bool = True,
) -> None:
    """Log a state write sent to a bound device"""
    extra = {"equipment": equipment_name, "desired": desired, "status_code": status_code}
    if success:
        logger.info(f"Write {equipment_name}.isOn = {desired}", extra=extra)
    else:
        logger.error(
            f"Failed to write {equipment_name}.isOn = {desired} (status {status_code})",
            extra=extra,
        )


def log_comm_status(
    logger: logging.LoggerAdapter,
    equipment_name: str,
    faulted: bool,
    reason: str | None = None,
) -> None:
    """Log a communication status transition"""
    if faulted:
        logger.warning(
            f"Comm fault on {equipment_name}" + (f": {reason}" if reason else ""),
            extra={"equipment": equipment_name, "comm_status": "fault", "reason": reason},
        )
    else:
        logger.info(
            f"Comm restored on {equipment_name}",
            extra={"equipment": equipment_name, "comm_status": "ok"},
        )


def log_data_record(
    logger: logging.LoggerAdapter,
    filename: str,
    data: Any,
) -> None:
    """Emit a diagnostic data record tagged with its target data file"""
    logger.debug(
        f"Data record for {filename}",
        extra={"data_file": filename, "data": data},
    )
