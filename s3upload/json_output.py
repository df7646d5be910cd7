"""JSON envelopes for ``--format json`` output.

Every s3upload command (``upload``, ``config set/get/list/unset``) and the
control surface's ``status`` snapshot print one envelope:

    {
        "success": true|false,
        "command": "upload",
        "data": {"source": ..., "configuration": {...}, "result": {...}},
        "errors": [{"type": "OSError", "message": "...", "path": "/data/a.txt"}]
    }

``errors`` appears only on failure. Entries built from an ``UploaderError``
carry its ``S3UP-*`` code; entries for a failed file carry its local path.

Usage:
    from s3upload.json_output import upload_envelope

    result = engine.upload()
    print(upload_envelope(result, source="./photos", configuration=config).to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from s3upload.errors import UploaderError

if TYPE_CHECKING:
    from s3upload.models import EngineConfiguration, UploadResult


@dataclass
class ErrorDetail:
    """One entry in an envelope's errors array.

    Attributes:
        type: Error class name (e.g., "InvalidStateError")
        message: Human-readable error description
        code: Structured error code, when the error has one
        path: Local file the error belongs to, for per-file transfer failures
    """

    type: str
    message: str
    code: str | None = None
    path: str | None = None

    @classmethod
    def from_exception(cls, err: Exception, *, path: str | None = None) -> ErrorDetail:
        """Build an ErrorDetail from an exception, keeping its code if any."""
        if isinstance(err, UploaderError):
            return cls(type=type(err).__name__, message=err.message, code=err.code, path=path)
        return cls(type=type(err).__name__, message=str(err), path=path)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"type": self.type, "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        if self.path is not None:
            result["path"] = self.path
        return result


@dataclass
class OutputEnvelope:
    """Wrapper structure for all JSON command output.

    Attributes:
        success: True if command completed without errors
        command: Name of the command that produced this output
        data: Command-specific payload
        errors: Error entries; present only when success=False
    """

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary; errors is omitted when None."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }
        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]
        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    """Create a success envelope with the given command and data."""
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Create an error envelope; data defaults to an empty dict."""
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )


def upload_envelope(
    result: UploadResult,
    *,
    source: str,
    configuration: EngineConfiguration,
) -> OutputEnvelope:
    """Wrap a finished upload run.

    The data block is the same whether or not the run succeeded. A run with
    failed files gets one error entry per file, in the order they failed.
    """
    data = {
        "source": source,
        "configuration": configuration.to_dict(),
        "result": result.to_dict(),
    }
    if result.success:
        return success_envelope("upload", data)
    errors = [ErrorDetail.from_exception(err, path=path) for path, err in result.errors]
    return error_envelope("upload", errors, data=data)
