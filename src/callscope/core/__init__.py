"""Core module exports."""

from callscope.core.errors import (
    CallscopeError,
    ConfigError,
    ErrorCode,
    IndexingError,
    InternalError,
)
from callscope.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CallscopeError",
    "ConfigError",
    "ErrorCode",
    "IndexingError",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
