"""Tests for models.py - work items, configuration and value validation."""

from __future__ import annotations

import dataclasses

import pytest

from s3upload.errors import InvalidArgumentError
from s3upload.models import (
    CONFIGURATION_FIELDS,
    EngineConfiguration,
    EngineState,
    UploadResult,
    WorkItem,
    is_valid_region,
    normalize_setting,
    validate_max_workers,
    validate_region,
)


class TestWorkItem:
    """Tests for WorkItem value semantics."""

    @pytest.mark.unit
    def test_default_prefix_is_empty(self) -> None:
        assert WorkItem("/data/a.txt").prefix == ""

    @pytest.mark.unit
    def test_value_equality(self) -> None:
        assert WorkItem("/a", "p") == WorkItem("/a", "p")
        assert WorkItem("/a", "p") != WorkItem("/a", "q")

    @pytest.mark.unit
    def test_str_is_path(self) -> None:
        assert str(WorkItem("/data/a.txt", "sub")) == "/data/a.txt"

    @pytest.mark.unit
    def test_is_immutable(self) -> None:
        item = WorkItem("/a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.path = "/b"  # type: ignore[misc]

    @pytest.mark.unit
    def test_to_dict(self) -> None:
        assert WorkItem("/a", "p").to_dict() == {"path": "/a", "prefix": "p"}


class TestRegionValidation:
    """Tests for AWS region name checks."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "region",
        ["us-east-1", "eu-west-1", "ap-southeast-2", "eu-central-1", "us-gov-west-1", "sa-east-1"],
    )
    def test_valid_regions(self, region: str) -> None:
        assert is_valid_region(region)
        assert validate_region(region) == region

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "region", ["", "US-EAST-1", "us-east", "mars-north-1", "us_east_1", "eu-west-1 "]
    )
    def test_invalid_regions(self, region: str) -> None:
        assert not is_valid_region(region)
        with pytest.raises(InvalidArgumentError):
            validate_region(region)

    @pytest.mark.unit
    def test_non_string_region_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            validate_region(None)


class TestMaxWorkersValidation:
    """Tests for worker count validation."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [(1, 1), (10, 10), ("8", 8), (4.0, 4)])
    def test_accepts_positive_integers(self, value: object, expected: int) -> None:
        assert validate_max_workers(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, -1, "0", "abc", "", None, 2.5, True, False])
    def test_rejects_invalid(self, value: object) -> None:
        with pytest.raises(InvalidArgumentError):
            validate_max_workers(value)


class TestEngineConfiguration:
    """Tests for the configuration record."""

    @pytest.mark.unit
    def test_defaults(self) -> None:
        config = EngineConfiguration()

        assert config.bucket_name is None
        assert config.destination_prefix == ""
        assert config.region == "us-east-1"
        assert config.max_workers == 10
        assert not any(
            [
                config.recurse,
                config.pretend,
                config.delete_after_upload,
                config.create_bucket_if_missing,
                config.purge_bucket_before_upload,
            ]
        )

    @pytest.mark.unit
    def test_to_dict_has_every_field(self) -> None:
        assert set(EngineConfiguration().to_dict()) == set(CONFIGURATION_FIELDS)


class TestNormalizeSetting:
    """Tests for normalize_setting()."""

    @pytest.mark.unit
    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Unknown configuration field"):
            normalize_setting("colour", "blue")

    @pytest.mark.unit
    def test_prefix_none_becomes_empty(self) -> None:
        assert normalize_setting("destination_prefix", None) == ""

    @pytest.mark.unit
    def test_bucket_keeps_none(self) -> None:
        assert normalize_setting("bucket_name", None) is None

    @pytest.mark.unit
    def test_flags_coerced_to_bool(self) -> None:
        assert normalize_setting("recurse", 1) is True
        assert normalize_setting("pretend", "") is False

    @pytest.mark.unit
    def test_max_workers_validated(self) -> None:
        assert normalize_setting("max_workers", "3") == 3
        with pytest.raises(InvalidArgumentError):
            normalize_setting("max_workers", 0)

    @pytest.mark.unit
    def test_region_validated(self) -> None:
        with pytest.raises(InvalidArgumentError):
            normalize_setting("region", "nowhere")


class TestEngineState:
    @pytest.mark.unit
    def test_values(self) -> None:
        assert [s.value for s in EngineState] == ["idle", "preparing", "running", "draining"]


class TestUploadResult:
    """Tests for UploadResult serialization."""

    @pytest.mark.unit
    def test_defaults(self) -> None:
        result = UploadResult()

        assert result.success is True
        assert result.files_uploaded == 0
        assert result.errors == []

    @pytest.mark.unit
    def test_to_dict_serializes_errors(self) -> None:
        result = UploadResult(success=False, files_failed=1, errors=[("/a", OSError("boom"))])

        data = result.to_dict()

        assert data["success"] is False
        assert data["errors"] == [{"path": "/a", "message": "boom"}]
