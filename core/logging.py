"""
Logging configuration with JSON formatter for structured logging.
"""
import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import Settings, get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def __init__(self, *args: Any, app_name: str = "", environment: str = "", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        log_record['app_name'] = self.app_name
        log_record['environment'] = self.environment

        if record.exc_info:
            log_record['exc_info'] = self.formatException(record.exc_info)


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure application logging.

    Structured JSON logging for staging and production,
    human-readable logging for development.
    """
    settings = settings or get_settings()
    use_json = settings.APP_ENV in ["production", "staging"]

    if use_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt='%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            app_name=settings.APP_NAME,
            environment=settings.APP_ENV,
        )
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )

    logging.info(
        "Logging configured",
        extra={
            "log_level": settings.LOG_LEVEL,
            "environment": settings.APP_ENV,
            "json_logging": use_json
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class LogContext:
    """Context manager for adding contextual information to logs."""

    def __init__(self, logger: Optional[logging.Logger] = None, **kwargs: Any):
        """
        Initialize log context.

        Args:
            logger: Logger to write to (defaults to this module's logger)
            **kwargs: Key-value pairs added to every record logged through the context
        """
        self.context = kwargs
        self.logger = logger or get_logger(__name__)

    def __enter__(self) -> 'LogContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.logger.error(
                f"Exception in context: {exc_type.__name__}",
                extra=self.context,
                exc_info=(exc_type, exc_val, exc_tb)
            )

    def log(self, level: str, message: str, **extra_fields: Any) -> None:
        """
        Log a message with context.

        Args:
            level: Log level (debug, info, warning, error, critical)
            message: Log message
            **extra_fields: Additional fields to include in log
        """
        log_method = getattr(self.logger, level.lower())
        merged_context = {**self.context, **extra_fields}
        log_method(message, extra=merged_context)
