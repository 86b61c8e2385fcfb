"""Callscope error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Indexing
- 9xxx: Internal

Lookups and resolutions never raise these; they return tagged values.
Errors are reserved for bad configuration, malformed input and bugs.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Indexing (3xxx)
    INDEX_INVALID_CAPTURE = 3001
    INDEX_UNKNOWN_LANGUAGE = 3002
    INDEX_MALFORMED = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CallscopeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CallscopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class IndexingError(CallscopeError):
    """Errors raised while turning captures into a semantic index."""

    @classmethod
    def invalid_capture(cls, name: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_INVALID_CAPTURE,
            message=f"Invalid capture '{name}': {reason}",
            details={"capture": name, "reason": reason},
        )

    @classmethod
    def unknown_language(cls, language: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_UNKNOWN_LANGUAGE,
            message=f"No language config registered for '{language}'",
            details={"language": language},
        )

    @classmethod
    def malformed_index(cls, file_path: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_MALFORMED,
            message=f"Malformed semantic index for {file_path}: {reason}",
            details={"path": file_path, "reason": reason},
        )


class InternalError(CallscopeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
