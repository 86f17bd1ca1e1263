"""
structlog JSON logging for the scout message service.

Every event carries level, logger name, ISO timestamp and any request_id bound
by the request context middleware. Pasted profiles and generated messages hold
personal data, so raw text fields are reduced to their length before rendering.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

RAW_TEXT_KEYS: tuple[str, ...] = ("paste_text", "source_text", "final_message", "message")
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access")


def redact_raw_text(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in RAW_TEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
    return event_dict


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog and route stdlib logging to stdout.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_raw_text,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_health_check(service: str, healthy: bool, latency_ms: float, error: str | None = None):
    """One log line per readiness probe, at error level when the probe failed."""
    logger = get_logger("health")
    fields: dict[str, Any] = {"service": service, "healthy": healthy, "latency_ms": latency_ms}
    if error:
        fields["error"] = error

    if healthy:
        logger.info("Health check passed", **fields)
    else:
        logger.error("Health check failed", **fields)
