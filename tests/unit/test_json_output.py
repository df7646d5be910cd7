"""Tests for the JSON output envelope."""

from __future__ import annotations

import json

import pytest

from s3upload.errors import InvalidStateError, TransferError
from s3upload.json_output import (
    ErrorDetail,
    OutputEnvelope,
    error_envelope,
    success_envelope,
    upload_envelope,
)
from s3upload.models import EngineConfiguration, UploadResult


class TestErrorDetail:
    @pytest.mark.unit
    def test_to_dict_without_code(self) -> None:
        assert ErrorDetail(type="ValueError", message="bad").to_dict() == {
            "type": "ValueError",
            "message": "bad",
        }

    @pytest.mark.unit
    def test_from_uploader_error_keeps_code(self) -> None:
        detail = ErrorDetail.from_exception(InvalidStateError("busy"))

        assert detail.to_dict() == {
            "type": "InvalidStateError",
            "message": "busy",
            "code": "S3UP-STA001",
        }

    @pytest.mark.unit
    def test_from_plain_exception(self) -> None:
        detail = ErrorDetail.from_exception(OSError("disk full"))

        assert detail.type == "OSError"
        assert detail.message == "disk full"
        assert detail.code is None


class TestEnvelope:
    """Envelope shape for success and error output."""

    @pytest.mark.unit
    def test_success_envelope(self) -> None:
        envelope = success_envelope("upload", {"files": 3})

        assert envelope.to_dict() == {"success": True, "command": "upload", "data": {"files": 3}}

    @pytest.mark.unit
    def test_error_envelope_defaults_data(self) -> None:
        envelope = error_envelope("upload", [ErrorDetail(type="E", message="m")])
        data = envelope.to_dict()

        assert data["success"] is False
        assert data["data"] == {}
        assert data["errors"] == [{"type": "E", "message": "m"}]

    @pytest.mark.unit
    def test_error_envelope_with_data(self) -> None:
        envelope = error_envelope("upload", [], data={"partial": True})

        assert envelope.data == {"partial": True}

    @pytest.mark.unit
    def test_to_json_parses(self) -> None:
        envelope = OutputEnvelope(success=True, command="status", data={"state": "idle"})

        assert json.loads(envelope.to_json()) == envelope.to_dict()
        assert "\n" not in envelope.to_json(indent=None)


class TestUploadEnvelope:
    """upload_envelope() wraps a finished run for the upload command."""

    @pytest.mark.unit
    def test_successful_run(self) -> None:
        config = EngineConfiguration(bucket_name="photos", recurse=True)
        result = UploadResult(files_uploaded=2, total_bytes=10, passes=1)

        data = upload_envelope(result, source="./photos", configuration=config).to_dict()

        assert data["success"] is True
        assert data["command"] == "upload"
        assert "errors" not in data
        assert data["data"]["source"] == "./photos"
        assert data["data"]["configuration"]["bucket_name"] == "photos"
        assert data["data"]["result"]["files_uploaded"] == 2

    @pytest.mark.unit
    def test_failed_files_become_error_entries(self) -> None:
        result = UploadResult(success=False, files_uploaded=1, files_failed=2)
        result.errors.append(("/data/a.txt", OSError("Access Denied")))
        result.errors.append(("/data/b.txt", TransferError("/data/b.txt", "b.txt", OSError("timeout"))))

        envelope = upload_envelope(result, source="/data", configuration=EngineConfiguration())
        errors = envelope.to_dict()["errors"]

        assert envelope.success is False
        assert envelope.data is not None
        assert envelope.data["result"]["files_failed"] == 2
        assert [e["path"] for e in errors] == ["/data/a.txt", "/data/b.txt"]
        assert errors[0] == {"type": "OSError", "message": "Access Denied", "path": "/data/a.txt"}
        assert errors[1]["code"] == "S3UP-TRN001"

    @pytest.mark.unit
    def test_path_omitted_for_run_level_errors(self) -> None:
        detail = ErrorDetail.from_exception(InvalidStateError("busy"))

        assert "path" not in detail.to_dict()
