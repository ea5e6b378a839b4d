import json
import logging
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request
from pydantic import BaseModel, Field

from foundation.config import settings


class LogMessage(BaseModel):
    """Structured log message format"""

    timestamp: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    level: str
    message: str
    service: str = Field(default_factory=lambda: settings.SERVICE_NAME)
    environment: str = Field(default_factory=lambda: settings.ENVIRONMENT)
    correlation_id: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    client_ip: Optional[str] = None
    duration_ms: Optional[float] = None
    status_code: Optional[int] = None
    component: Optional[str] = None
    exception: Optional[str] = None
    traceback: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


class CustomJSONEncoder(json.JSONEncoder):
    """Custom JSON encoder that can handle exceptions and other special types"""

    def default(self, obj):
        if isinstance(obj, Exception):
            return str(obj)
        return super().default(obj)


class StructuredLogger:
    """
    Structured JSON logger for consistent, machine-parseable logs
    """

    def __init__(self, name: str, level: Optional[str] = None):
        self.name = name
        self.logger = logging.getLogger(name)

        # Set log level from settings if not explicitly provided
        self.logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper()))

        # Remove existing handlers to avoid duplicate logs
        if self.logger.handlers:
            self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(console_handler)
        self.logger.propagate = False

    def log(self, level: str, message: str, **kwargs) -> None:
        """Base logging method"""
        log_level = getattr(logging, level.upper())
        if not self.logger.isEnabledFor(log_level):
            return

        if isinstance(kwargs.get("exception"), Exception):
            kwargs["exception"] = str(kwargs["exception"])

        # Known fields are validated by LogMessage, anything else is passed through
        fields = {key: kwargs.pop(key) for key in list(kwargs) if key in LogMessage.model_fields}
        entry = LogMessage(level=level, message=message, **fields)
        log_data = {**entry.model_dump(exclude_none=True), "logger": self.name, **kwargs}

        self.logger.log(log_level, json.dumps(log_data, cls=CustomJSONEncoder))

    def info(self, message: str, **kwargs) -> None:
        """Log at INFO level"""
        self.log("INFO", message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log at DEBUG level"""
        self.log("DEBUG", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log at WARNING level"""
        self.log("WARNING", message, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log at ERROR level with optional exception details"""
        if exception:
            kwargs["exception"] = str(exception)
            kwargs["traceback"] = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
        self.log("ERROR", message, **kwargs)

    def critical(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """Log at CRITICAL level with optional exception details"""
        if exception:
            kwargs["exception"] = str(exception)
            kwargs["traceback"] = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
        self.log("CRITICAL", message, **kwargs)

    def request_log(
        self,
        request: Request,
        status_code: int,
        duration_ms: float,
        correlation_id: Optional[str] = None,
        **kwargs,
    ) -> None:
        """Log request details once the response is known"""
        self.info(
            f"Request {request.method} {request.url.path}",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            duration_ms=duration_ms,
            correlation_id=correlation_id,
            client_ip=request.client.host if request.client else None,
            **kwargs,
        )


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON strings"""

    def format(self, record):
        if isinstance(record.msg, str):
            try:
                message_dict = json.loads(record.msg)
            except json.JSONDecodeError:
                message_dict = {"message": record.msg}
        else:
            message_dict = record.msg

        if not isinstance(message_dict, dict):
            message_dict = {"message": str(message_dict)}

        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "service": settings.SERVICE_NAME,
            "environment": settings.ENVIRONMENT,
            **message_dict,
        }

        return json.dumps(log_data, cls=CustomJSONEncoder)


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: Optional[str] = None) -> StructuredLogger:
    """
    Return the structured logger for ``name``, creating it on first use.
    """
    name = name or "foundation"
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


logger = get_logger("foundation")
