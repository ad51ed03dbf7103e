"""structlog setup shared by the API server and scripts.

Modules keep logging through ``logging.getLogger(__name__)``; the stdlib
records are routed through structlog's ProcessorFormatter so they carry the
request context (trace_id, user_id, document_id) bound by the middleware.
"""

import logging
import sys

import structlog

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_level: debug/info/warning/error; unknown values fall back to info.
        json_output: JSON lines when True, human-readable console otherwise.
    """
    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(trace_id: str, user_id: str | None = None, document_id: str | None = None) -> None:
    """Bind the request's identifiers for every log line in this async context."""
    structlog.contextvars.bind_contextvars(
        trace_id=trace_id,
        **{k: v for k, v in (("user_id", user_id), ("document_id", document_id)) if v},
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
