"""Structured logging for ShipTrack.

Records carry the tenant (and the carrier, while a webhook or a polled batch
is being ingested) as context variables. Development gets a colored console;
production and staging emit one JSON object per line.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

SERVICE_NAME = "shiptrack"

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "sqlalchemy.engine")

_ROTATE_BYTES = 10 * 1024 * 1024


def _environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def _renders_json() -> bool:
    return _environment() in ("production", "staging")


def get_log_level() -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(), "INFO")).upper()


def _rotating(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_ROTATE_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _configure_handlers(level: str, log_dir: str | None) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    root.addHandler(console)

    log_dir = log_dir or os.getenv("TRACKING_LOG_DIR")
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating(directory / "tracking.log", level))
        root.addHandler(_rotating(directory / "tracking_error.log", logging.ERROR))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _tag_service(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _processors() -> list:
    chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if _renders_json():
        chain.append(_tag_service)
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    return chain


def configure_logging(log_dir: str | None = None) -> None:
    """Configure stdlib handlers and the structlog pipeline.

    Passing ``log_dir`` (or setting ``TRACKING_LOG_DIR``) adds rotating file
    handlers, with errors duplicated into ``tracking_error.log``.
    """
    _configure_handlers(get_log_level(), log_dir)

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_tenant(tenant_id: str | None) -> None:
    """Attach the tenant to every record logged in the current context."""
    if tenant_id:
        structlog.contextvars.bind_contextvars(tenant_id=tenant_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def carrier_context(carrier: str) -> Iterator[None]:
    """Tag records with ``carrier`` for the duration of an ingestion call."""
    with structlog.contextvars.bound_contextvars(carrier=carrier):
        yield
