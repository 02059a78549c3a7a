"""structlog setup for the signal tool.

Every module logs through ``get_logger(__name__)``; ``setup_logging`` is
called once by the entry point and routes structlog events (and the stdlib
records of uvicorn, ccxt and urllib) through a single root handler.
"""

import logging
import os

import structlog

#: Third-party loggers that are chatty at DEBUG/INFO (ccxt logs every request).
_NOISY_LOGGERS = ("ccxt", "urllib3", "asyncio")


def setup_logging(log_level: str = "INFO") -> None:
    """Install the root handler and configure structlog.

    ``LOG_FORMAT=json`` renders one JSON object per event for log shipping;
    anything else renders the coloured console format used during local
    dashboard runs.
    """
    render_json = os.environ.get("LOG_FORMAT", "console").lower() == "json"

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if render_json else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a ``cryptosignal`` module, bound to its dotted name."""
    return structlog.get_logger(name)
