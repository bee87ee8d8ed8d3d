"""
Logging configuration for kvstore.

Verbosity maps to log levels:
    0 (no flag)  WARNING
    1 (-v)       INFO
    2 (-vv)      DEBUG
    3+ (-vvv)    DEBUG, including etcd3 and grpc internals

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept quiet unless -vvv
DEPENDENCY_LOGGERS = ("etcd3", "grpc")


def setup_logging(verbose_count: int = 0) -> None:
    """
    Configure root logging based on verbosity count.

    Args:
        verbose_count: Number of -v flags passed on the command line
    """
    if verbose_count <= 0:
        level = logging.WARNING
    elif verbose_count == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    dependency_level = logging.DEBUG if verbose_count >= 3 else logging.WARNING
    for name in DEPENDENCY_LOGGERS:
        logging.getLogger(name).setLevel(dependency_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Logger name, usually __name__

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
