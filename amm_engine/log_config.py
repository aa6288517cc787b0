"""structlog setup for scripts and interactive use.

The library itself only calls structlog.get_logger(); applications decide
how events are rendered.
"""

import logging

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog with level filtering and console rendering.

    Args:
        verbose: Emit debug events (refused quotes, partial fills, refreshes)
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
