"""
Shared logging configuration for the master server.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Correlation for the in-flight master server request
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
session_user_var: ContextVar[Optional[int]] = ContextVar('session_user', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure JSON structured logging on top of the standard library."""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_component,
            add_correlation_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    structlog.contextvars.bind_contextvars(service=service_name)


def add_component(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with the component part of the logger name ("users", "liveness", ...)."""
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict.setdefault("component", logger_name.split(".")[0])
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the request id and the logged-in user of the current request."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    session_user = session_user_var.get()
    if session_user is not None:
        event_dict["session_user"] = session_user

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_session_user(user_id: Optional[int]) -> None:
    """Remember which user the current request acts for."""
    session_user_var.set(user_id)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    session_user_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
