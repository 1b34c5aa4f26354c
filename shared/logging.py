"""
Structured logging for the auth client.

Components log key/value events through structlog. While a validation runs,
the user it is working for is held in a context variable, and
``add_validation_context`` copies it onto every event emitted in that time,
whichever component emits it. Each asyncio task sees its own value.
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

import structlog

validation_user_var: ContextVar[Optional[str]] = ContextVar("validation_user", default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Route auth client events through stdlib logging as JSON lines."""
    level = getattr(logging, log_level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_component,
            add_validation_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger(service_name).setLevel(level)


def add_component(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Split a logger name like "auth_client.cache.redis" into service and component."""
    service, _, component = event_dict.get("logger", "").partition(".")
    if component:
        event_dict["service"] = service
        event_dict["component"] = component
    return event_dict


def add_validation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with the user of the validation in progress."""
    user_id = validation_user_var.get()
    if user_id is not None:
        event_dict.setdefault("user_id", user_id)
    return event_dict


@contextmanager
def bind_validation_user(user_id: str) -> Iterator[None]:
    """Make ``user_id`` the validation user until the block exits."""
    token = validation_user_var.set(user_id)
    try:
        yield
    finally:
        validation_user_var.reset(token)


def current_validation_user() -> Optional[str]:
    return validation_user_var.get()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
