"""
Logging configuration for the Outlook attachment server.

Helpers log through the "outlook" logger; adapters, workspace and tools use
logging.getLogger(__name__). configure_logging() wires all of them to
stderr. Extractors should NOT log (they're pure functions).
"""

import logging
import sys

logger = logging.getLogger("outlook")

# Top-level packages whose module loggers share the server handler
PACKAGE_LOGGERS = ("outlook", "adapters", "tools", "workspace")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Send package logs to stderr at the given level.

    MCP speaks JSON-RPC over stdout; a stray log line there breaks the client.
    Safe to call more than once.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR); unknown names mean INFO
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(resolved)
        if not package_logger.handlers:
            package_logger.addHandler(handler)
        package_logger.propagate = False


# Not called on import; server.py configures once at startup.


# Convenience functions for common patterns
def log_parse(kind: str, filename: str | None, size: int) -> None:
    """Log the start of a parse with the input size."""
    logger.debug(f"Parse: {kind} {filename or '(unnamed)'} ({size} bytes)")


def log_spill(file_path: str, size: int, measured: int) -> None:
    """Log that a response exceeded the limit and was written to disk."""
    logger.info(f"Spill: response was {measured} bytes, wrote {size} bytes to {file_path}")


def log_cleanup(cleaned: int, work_dir: str) -> None:
    """Log a retention sweep summary."""
    if cleaned:
        logger.info(f"Cleanup: removed {cleaned} old files from {work_dir}")
    else:
        logger.debug(f"Cleanup: nothing to remove in {work_dir}")
