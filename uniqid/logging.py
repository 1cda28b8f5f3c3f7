from __future__ import annotations

"""
structlog configuration for uniqid.

Events from uniqid and from stdlib loggers (httpx, asyncio) go through one
`ProcessorFormatter` on the root handler and come out as JSON lines (or the
dev console renderer). Every event gets an ISO timestamp, its logger name,
`service`, and whatever `bind_request_context` put in contextvars
(`request_id` per verification).

Credentials must never reach a log line. The redaction step masks values
under credential-ish keys at any nesting depth and replaces `Credential`
objects outright, so even an accidental `log.info(..., request=req)` is safe.

    from uniqid.logging import setup_logging, get_logger

    setup_logging()                      # once, at process start
    log = get_logger(__name__)
    log.info("registry.resolved", identifier="42")

Level and renderer default to `UNIQID_LOG_LEVEL` / `UNIQID_LOG_FORMAT`.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

from .types import Credential, VerificationRequest

REDACT_KEYS = frozenset(
    {"email", "secret", "credential", "password", "de_key", "token", "authorization"}
)
REDACTED = "***"

_QUIET_LOGGERS = ("asyncio", "httpcore", "httpx")


# ------------------------------ Redaction ------------------------------------


def _scrub(value: Any) -> Any:
    if isinstance(value, Credential):
        return REDACTED
    if isinstance(value, VerificationRequest):
        return {"claimed_identifier": value.claimed_identifier, "path": value.path}
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            masked = str(k).lower() in REDACT_KEYS and v is not None
            out[k] = REDACTED if masked else _scrub(v)
        return out
    if type(value) in (list, tuple):
        return type(value)(_scrub(v) for v in value)
    return value


def _redact_secrets(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential material anywhere in the event."""
    return _scrub(event_dict)


# ------------------------------ Setup ----------------------------------------


def _shared_processors(service_name: str, with_tracebacks: bool) -> List[Any]:
    def add_service(_: Any, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    chain: List[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        merge_contextvars,
        structlog.processors.StackInfoRenderer(),
    ]
    if with_tracebacks:
        chain.append(structlog.processors.format_exc_info)
    chain += [_redact_secrets, structlog.processors.UnicodeDecoder(), add_service]
    return chain


def setup_logging(
    *,
    service_name: str = "uniqid",
    level: Optional[Union[str, int]] = None,
    log_format: Optional[str] = None,
    include_stacktrace: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the root stdlib logger. Calling it again replaces
    the previous configuration (the CLI does so on every invocation).

    include_stacktrace defaults to True for JSON output; the console renderer
    prints tracebacks itself.
    """
    if level is None or log_format is None:
        from .config import get_settings

        settings = get_settings()
        level = level or settings.log_level
        log_format = log_format or settings.log_format

    log_format = log_format.lower()
    if include_stacktrace is None:
        include_stacktrace = log_format == "json"
    shared = _shared_processors(service_name, include_stacktrace)

    if log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)
    else:
        renderer = JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        # module-level loggers must follow a later reconfiguration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Lazy logger; safe to create at import time, before `setup_logging`."""
    return structlog.get_logger(name) if name else structlog.get_logger()


# ------------------------------ Request context -------------------------------


def bind_request_context(**kv: Any) -> None:
    """Attach key/values (e.g. request_id) to every event on this task."""
    structlog.contextvars.bind_contextvars(**kv)


def clear_request_context(*keys: str) -> None:
    """Drop the given keys, or the whole request context when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = [
    "REDACT_KEYS",
    "REDACTED",
    "setup_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]
