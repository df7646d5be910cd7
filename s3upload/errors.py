"""Structured error codes for s3upload.

All errors follow the format S3UP-{category}{number}:
- S3UP-STA*: Engine state errors
- S3UP-ARG*: Argument errors
- S3UP-CON*: Storage connection errors
- S3UP-TRN*: Per-file transfer errors
- S3UP-WLK*: Directory walk errors
- S3UP-CFG*: Configuration file errors
"""

from __future__ import annotations

from typing import Any


class UploaderError(Exception):
    """Base class for all s3upload errors.

    All errors have:
    - code: Structured error code (e.g., S3UP-STA001)
    - message: Human-readable error message
    """

    code: str = "S3UP-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize an s3upload error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }


# State Errors (S3UP-STA*)
class InvalidStateError(UploaderError):
    """Raised when the engine is asked to do something its state forbids.

    Error code: S3UP-STA001

    The usual cause is changing configuration while an upload is running or
    while workers are still live.
    """

    code = "S3UP-STA001"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, **context)


# Argument Errors (S3UP-ARG*)
class InvalidArgumentError(UploaderError):
    """Raised for structurally wrong input.

    Error code: S3UP-ARG001
    """

    code = "S3UP-ARG001"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, **context)


# Connection Errors (S3UP-CON*)
class StoreConnectionError(UploaderError):
    """Raised when a storage session cannot be established.

    Error code: S3UP-CON001
    """

    code = "S3UP-CON001"

    def __init__(self, reason: str, credential_path: str | None = None) -> None:
        super().__init__(
            f"Cannot connect to storage: {reason}",
            reason=reason,
            credential_path=credential_path,
        )


# Transfer Errors (S3UP-TRN*)
class TransferError(UploaderError):
    """Raised when one file fails to upload or to be deleted afterwards.

    Error code: S3UP-TRN001
    """

    code = "S3UP-TRN001"

    def __init__(self, path: str, key: str, original_error: Exception) -> None:
        super().__init__(
            f"Transfer failed for {path} -> {key}: {original_error}",
            path=path,
            key=key,
            original_error_type=type(original_error).__name__,
            original_error_message=str(original_error),
        )
        # Keep original exception for programmatic access (not serialized)
        self.original_exception = original_error


# Walk Errors (S3UP-WLK*)
class WalkError(UploaderError):
    """Raised when a directory entry cannot be resolved during a walk.

    Error code: S3UP-WLK001
    """

    code = "S3UP-WLK001"

    def __init__(self, path: str, original_error: Exception) -> None:
        super().__init__(
            f"Cannot resolve {path}: {original_error}",
            path=path,
            original_error_type=type(original_error).__name__,
            original_error_message=str(original_error),
        )
        self.original_exception = original_error


# Configuration Errors (S3UP-CFG*)
class ConfigParseError(UploaderError):
    """Raised when a configuration file cannot be parsed.

    Error code: S3UP-CFG001
    """

    code = "S3UP-CFG001"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )
