"""Shared constants for s3upload.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

from __future__ import annotations

# Default number of concurrent transfer workers per pass
DEFAULT_MAX_WORKERS: int = 10

# Region used when none is configured
DEFAULT_REGION: str = "us-east-1"

# How long an idle worker waits for a new item before ending its loop
DEQUEUE_TIMEOUT_SECONDS: float = 1.0

# Heartbeat interval for the drain monitor (progress line, not the wake-up signal)
MONITOR_HEARTBEAT_SECONDS: float = 10.0

# Separator used in object keys regardless of platform
KEY_SEPARATOR: str = "/"

# AWS region names, e.g. us-east-1, eu-central-2, ap-southeast-3, us-gov-west-1
REGION_PATTERN: str = (
    r"^(us|eu|ap|sa|ca|me|af|il|mx|cn)(-gov|-iso|-isob)?-"
    r"(north|south|east|west|central|northeast|southeast|northwest|southwest)-\d+$"
)
