"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CALLSCOPE__SECTION__KEY)
3. Repo YAML (.callscope/config.yaml)
4. Global YAML (~/.config/callscope/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CALLSCOPE__<SECTION>__<KEY>=<VALUE>

Examples:
    CALLSCOPE__LOGGING__LEVEL=DEBUG
    CALLSCOPE__INDEXER__MAX_WORKERS=4
    CALLSCOPE__RESOLUTION__MAX_REEXPORT_DEPTH=20
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from callscope.config.constants import MAX_REEXPORT_DEPTH_HARD_LIMIT, SUPPORTED_LANGUAGES

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CALLSCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every capture gap and unresolved name.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexerConfig(BaseModel):
    """Per-file indexing configuration.

    Env vars:
        CALLSCOPE__INDEXER__MAX_WORKERS: Parallel indexing workers
    """

    max_workers: int = Field(
        default=1,
        description="Worker processes for per-file indexing. 1 indexes in-process.",
    )
    languages: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_LANGUAGES),
        description="Languages whose capture streams are indexed. Others are skipped.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v

    @field_validator("languages")
    @classmethod
    def validate_languages(cls, v: list[str]) -> list[str]:
        unknown = sorted(set(v) - set(SUPPORTED_LANGUAGES))
        if unknown:
            raise ValueError(f"Unsupported languages: {', '.join(unknown)}")
        return v


class ResolutionConfig(BaseModel):
    """Name and import resolution configuration.

    Env vars:
        CALLSCOPE__RESOLUTION__MAX_REEXPORT_DEPTH: Re-export hops followed
        CALLSCOPE__RESOLUTION__CACHE_MODULE_RESOLUTION: Cache import paths
    """

    max_reexport_depth: int = Field(
        default=10,
        description="Maximum re-export hops followed before giving up on a chain.",
    )
    cache_module_resolution: bool = Field(
        default=True,
        description="Cache raw import path -> file lookups per importing file.",
    )

    @field_validator("max_reexport_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if not (1 <= v <= MAX_REEXPORT_DEPTH_HARD_LIMIT):
            raise ValueError(
                f"max_reexport_depth must be 1-{MAX_REEXPORT_DEPTH_HARD_LIMIT}, got {v}"
            )
        return v


class CallGraphConfig(BaseModel):
    """Call graph export configuration.

    Env vars:
        CALLSCOPE__CALL_GRAPH__INCLUDE_MODULE_INVOCATIONS: Export top-level calls
    """

    include_module_invocations: bool = Field(
        default=True,
        description="Include module-level invocations in CallGraph.to_dict().",
    )


class CallscopeConfig(BaseModel):
    """Root configuration for callscope.

    All settings can be configured via:
    1. Environment variables: CALLSCOPE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    call_graph: CallGraphConfig = Field(default_factory=CallGraphConfig)
