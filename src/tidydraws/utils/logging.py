"""structlog setup for tidydraws as a library and as an application.

Library modules only call ``structlog.get_logger(__name__)``. Importing
tidydraws installs a quiet default (configure_library_logging) that routes
events through the standard ``logging`` module, so nothing is printed
until the host application attaches handlers; debug and info events are
dropped at the default WARNING level.

The CLI calls setup_logging(), which installs tidydraws' own console
handler on stderr and, optionally, a JSON file handler.
"""

import logging
import sys
from pathlib import Path

import structlog

# Marks handlers installed by setup_logging so a later call replaces only those
_HANDLER_TAG = "_tidydraws_handler"

_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def configure_library_logging() -> bool:
    """Route structlog through stdlib logging unless already configured.

    Returns:
        True if this call configured structlog, False if the application
        had configured it already (its configuration is left alone).
    """
    if structlog.is_configured():
        return False
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Not cached, so a later setup_logging() reaches loggers already in use
        cache_logger_on_first_use=False,
    )
    return True


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=is_interactive()),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    return handler


def _json_file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    return handler


def setup_logging(
    verbose: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """Configure logging for a command-line session.

    Console output goes to stderr at INFO (DEBUG with ``verbose``), so
    stdout stays free for tables and CSV. With ``log_file``, every DEBUG
    event is also written there as one JSON object per line.

    Handlers installed by an earlier call are replaced; handlers added by
    anything else are kept.

    Args:
        verbose: Show DEBUG events such as ``spread_draws_matched`` on the console.
        log_file: Optional path of a JSON log file.

    Example:
        >>> setup_logging(verbose=True, log_file="outputs/summaries.log.json")
    """
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handlers = [_console_handler(logging.DEBUG if verbose else logging.INFO)]
    if log_file is not None:
        handlers.append(_json_file_handler(Path(log_file)))
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)


def is_interactive() -> bool:
    """True if stderr is a terminal; the console renderer colors only then."""
    return sys.stderr.isatty()
