"""Structured logging for the ``undoable`` logger tree.

structlog renders records emitted through plain ``logging.getLogger``
calls, so library modules never import structlog themselves.  The
application decides once, at startup, how those records look.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

ROOT_LOGGER = "undoable"


def _renderer(log_json: bool) -> Any:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_json: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """Attach structlog-formatted handlers to the ``undoable`` logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of an extra file handler.
        log_json: Render one JSON object per line instead of console text.
        propagate: Let records continue to the root logger as well.

    Returns the configured ``undoable`` logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    pre_chain: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_json),
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))

    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric_level)
    root.propagate = propagate
    return root


def setup_logging_from_config(system: Any) -> logging.Logger:
    """Configure logging from the ``undoable.system`` config section."""
    if system is None:
        return setup_logging()
    get = system.get
    return setup_logging(
        level=str(get("log_level", "INFO")),
        log_file=get("log_file"),
        log_json=bool(get("log_json", False)),
    )
