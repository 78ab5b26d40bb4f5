"""Structured logging configuration using structlog.

Provides JSON output for production (parseable by ELK, Loki, CloudWatch)
and pretty console output for development.

Provider credentials never reach the log output: values under credential-like
keys and ``Bearer`` tokens inside strings (upstream error bodies sometimes
echo the request headers) are masked by ``mask_credentials``.
"""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger


MASK = "***"

_CREDENTIAL_KEYS = frozenset(
    {"authorization", "api_key", "apikey", "token", "hf_token", "x-api-key"}
)
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE)


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to all log events."""
    event_dict["app"] = "provider-gateway"
    return event_dict


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return _BEARER_PATTERN.sub(rf"\g<1>{MASK}", value)
    if isinstance(value, dict):
        return {
            k: MASK if str(k).lower() in _CREDENTIAL_KEYS else _mask(v)
            for k, v in value.items()
        }
    if type(value) in (list, tuple):
        return type(value)(_mask(v) for v in value)
    return value


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask credential values anywhere in the event, nested dicts included."""
    return _mask(event_dict)


def configure_logging(log_level: str = "INFO", environment: str = "development") -> None:
    """Configure structlog for structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment name (development, production)

    In production mode the renderer emits one JSON object per line with ISO
    timestamps and formatted exception info. In development mode it emits
    colored console output.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    # Shared by structlog loggers and stdlib records (uvicorn, httpx)
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        mask_credentials,
    ]

    is_production = environment.lower() == "production"

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        # ConsoleRenderer formats exceptions itself
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    # Provider traffic is logged by the dispatcher, not by the transport
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
