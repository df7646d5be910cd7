"""s3upload - Concurrently upload a local file tree to an S3 bucket."""

from s3upload.cli import cli
from s3upload.control import ControlSurface
from s3upload.engine import UploadEngine
from s3upload.models import EngineConfiguration, EngineState, UploadResult, WorkItem

__all__ = [
    "ControlSurface",
    "EngineConfiguration",
    "EngineState",
    "UploadEngine",
    "UploadResult",
    "WorkItem",
    "cli",
]
