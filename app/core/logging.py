"""
Logging configuration for the application.
Structured logging with environment-aware settings.
"""

import logging
import sys
from typing import Any, Dict

from app.core.config import settings


class StructuredFormatter(logging.Formatter):
    """
    Formatter that renders records as key=value pairs for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": settings.environment,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Request-scoped extras
        for key in ("request_id", "user_id", "search_mode", "query"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return " ".join(f"{k}={v}" for k, v in log_data.items())


def setup_logging() -> None:
    """
    Configure application logging based on environment settings.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    # Structured in production/UAT, human-readable in development
    if settings.is_production or settings.is_uat:
        formatter = StructuredFormatter(fmt="%(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Third-party noise
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    app_logger = logging.getLogger("app")
    app_logger.setLevel(log_level)

    app_logger.info(
        f"Logging configured: environment={settings.environment}, level={settings.log_level}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
