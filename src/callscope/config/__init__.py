"""Config module exports."""

from callscope.config.loader import load_config
from callscope.config.models import (
    CallGraphConfig,
    CallscopeConfig,
    IndexerConfig,
    LoggingConfig,
    LogOutputConfig,
    ResolutionConfig,
)

__all__ = [
    "load_config",
    "CallscopeConfig",
    "CallGraphConfig",
    "IndexerConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ResolutionConfig",
]
