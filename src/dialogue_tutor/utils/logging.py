from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog

# Chatty client libraries only surface problems.
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """
    Set up stdlib logging for the engine modules and structlog for CLI events.

    Engine modules log through `logging.getLogger(__name__)`; those records go to stderr and,
    when `log_file` is given, are appended to that file as well. structlog events carry any
    values bound with `bind_course` and are rendered as console text or JSON lines.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=numeric_level,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            _renderer(json_output),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def bind_course(storage_prefix: str, title: str) -> None:
    """Attach the active course to every structlog event emitted afterwards."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(course=storage_prefix, course_title=title)


def get_logger(name: Optional[str] = None):
    """Return a structlog logger that inherits the global configuration."""
    return structlog.get_logger(name)
