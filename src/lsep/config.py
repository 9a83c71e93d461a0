"""Environment-driven defaults for LSEP sockets.

``LSEP_DEBUG``            enable DEBUG logging for the ``lsep`` logger
``LSEP_READ_BUFFER_KIB``  internal read buffer size in KiB (default 1024)
"""

import logging
import os

DEBUG_ENV = "LSEP_DEBUG"
READ_BUFFER_ENV = "LSEP_READ_BUFFER_KIB"

# Smaller buffers lower the memory footprint for small messages,
# larger ones trade memory for throughput.
DEFAULT_READ_BUFFER_KIB = 1024


def debug_enabled() -> bool:
    return os.getenv(DEBUG_ENV, "").lower() in ("1", "true", "yes")


def default_read_buffer_size() -> int:
    """Read buffer size in bytes, from ``LSEP_READ_BUFFER_KIB`` if set."""
    raw = os.getenv(READ_BUFFER_ENV, "").strip()
    if not raw:
        return DEFAULT_READ_BUFFER_KIB * 1024
    try:
        kib = int(raw)
    except ValueError:
        raise ValueError(f"{READ_BUFFER_ENV} must be an integer, got {raw!r}") from None
    if kib <= 0:
        raise ValueError(f"{READ_BUFFER_ENV} must be positive, got {kib}")
    return kib * 1024


def configure_logging() -> logging.Logger:
    """Set the package logger level from ``LSEP_DEBUG``.

    Output handling is left to the application (or pytest's log capture).
    """
    logger = logging.getLogger("lsep")
    logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    return logger
