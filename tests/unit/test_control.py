"""Tests for ControlSurface."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from s3upload.control import ControlSurface
from s3upload.engine import UploadEngine
from s3upload.errors import InvalidArgumentError
from s3upload.models import WorkItem


@pytest.fixture
def control(make_engine: Callable[..., UploadEngine]) -> ControlSurface:
    return ControlSurface(make_engine())


class TestAccessors:
    """Getters and setters proxy to the engine."""

    @pytest.mark.unit
    def test_defaults(self, control: ControlSurface) -> None:
        assert control.get_bucket_name() == "test-bucket"
        assert control.get_destination() == ""
        assert control.get_credential_path() == "unused"
        assert control.get_region() == "us-east-1"
        assert control.get_maximum_thread_count() == 10
        assert not control.is_recurse()
        assert not control.is_pretend()
        assert not control.is_delete_after_upload()
        assert not control.is_create()
        assert not control.is_purge()
        assert not control.is_running()
        assert control.get_live_thread_count() == 0
        assert control.peek() is None

    @pytest.mark.unit
    def test_setters(self, control: ControlSurface) -> None:
        control.set_bucket_name("other")
        control.set_destination("backups")
        control.set_credential_path("/etc/creds")
        control.set_region("ap-southeast-2")
        control.set_maximum_thread_count(4)
        control.set_recurse(True)
        control.set_pretend(True)
        control.set_delete_after_upload(True)
        control.set_create(True)
        control.set_purge(True)

        assert control.get_bucket_name() == "other"
        assert control.get_destination() == "backups"
        assert control.get_credential_path() == "/etc/creds"
        assert control.get_region() == "ap-southeast-2"
        assert control.get_maximum_thread_count() == 4
        assert control.is_recurse()
        assert control.is_pretend()
        assert control.is_delete_after_upload()
        assert control.is_create()
        assert control.is_purge()

    @pytest.mark.unit
    def test_setter_validation(self, control: ControlSurface) -> None:
        with pytest.raises(InvalidArgumentError):
            control.set_maximum_thread_count(0)


class TestOperations:
    @pytest.mark.unit
    def test_queue_and_upload(
        self, control: ControlSurface, storage: Any, sample_tree: Path
    ) -> None:
        control.set_recurse(True)
        control.queue(WorkItem(str(sample_tree)))
        assert control.peek() == WorkItem(str(sample_tree))

        result = control.upload()

        assert result.files_uploaded == 2
        assert storage.keys == ["a.txt", "sub/b.txt"]
        assert not control.is_running()


class TestStatus:
    """JSON snapshots of the engine."""

    @pytest.mark.unit
    def test_status_is_json_serializable(self, control: ControlSurface) -> None:
        control.queue(WorkItem("/data/a.txt", "p"))

        status = control.status()
        json.dumps(status)

        assert status["state"] == "idle"
        assert status["running"] is False
        assert status["live_workers"] == 0
        assert status["queue_size"] == 1
        assert status["queue_head"] == {"path": "/data/a.txt", "prefix": "p"}
        assert status["configuration"]["bucket_name"] == "test-bucket"
        assert status["last_result"]["files_uploaded"] == 0

    @pytest.mark.unit
    def test_status_after_upload(
        self, control: ControlSurface, sample_tree: Path
    ) -> None:
        control.queue(WorkItem(str(sample_tree / "a.txt")))
        control.upload()

        status = control.status()

        assert status["queue_head"] is None
        assert status["last_result"]["files_uploaded"] == 1
        assert status["last_result"]["passes"] == 1

    @pytest.mark.unit
    def test_status_envelope(self, control: ControlSurface) -> None:
        data = json.loads(control.status_envelope().to_json())

        assert data["success"] is True
        assert data["command"] == "status"
        assert data["data"]["state"] == "idle"
        assert "errors" not in data
