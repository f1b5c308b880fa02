"""Log routing for lockerctl commands.

Command results go to stdout (often as JSON for a kiosk or a script), so
every log line goes to stderr. Humans at a staff terminal get the console
renderer; ``--log-json`` gives one JSON object per line for collectors.

Retrieval codes must never reach a log. Services do not log them, and
:func:`redact_codes` masks the keys that could carry one in case a plugin
or a future call site does.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

SECRET_KEYS = frozenset({"otp", "pickup_code"})
MASK = "******"


def redact_codes(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking retrieval codes in structured fields."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = MASK
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Send lockerctl and library logs to stderr through structlog.

    Args:
        verbose: lockerctl loggers emit DEBUG (unit-of-work, plugin and
            telemetry detail). Otherwise only warnings, such as rolled-back
            units of work, are shown.
        log_json: Render JSON lines instead of console output.
    """
    locker_level = logging.DEBUG if verbose else logging.WARNING

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_codes,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    stderr = logging.StreamHandler(sys.stderr)
    stderr.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    # Replace handlers from an earlier invocation in the same process.
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stderr)
    root.setLevel(logging.WARNING)

    logging.getLogger("lockerctl").setLevel(locker_level)
    # Engine echo would print bound parameters, codes included.
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
