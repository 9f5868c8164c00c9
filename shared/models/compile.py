"""
Compile job data models.

Defines CompileRequest, MediaProbe, JobState, and CompileResult.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

DEFAULT_IMAGE_DURATION_SEC = 5.0


class CompileRequest(BaseModel):
    """Assets and timing for one compile job."""

    model_config = ConfigDict(populate_by_name=True)

    images: Optional[List[str]] = Field(default=None, description="Image URLs, in scene order")
    videos: Optional[List[str]] = Field(default=None, description="Video URLs, in scene order")
    image_duration_sec: float = Field(
        default=DEFAULT_IMAGE_DURATION_SEC,
        gt=0,
        allow_inf_nan=False,
        alias="imageDurationSec",
        description="Duration of each image clip in seconds"
    )
    voiceover_url: Optional[str] = Field(
        default=None,
        alias="voiceoverUrl",
        description="Reserved for a future voiceover track; not used by the pipeline"
    )

    @property
    def image_urls(self) -> List[str]:
        return list(self.images or [])

    @property
    def video_urls(self) -> List[str]:
        return list(self.videos or [])


class MediaProbe(BaseModel):
    """Audio presence and duration of a media file."""

    model_config = ConfigDict(frozen=True)

    has_audio: bool
    duration: float = Field(ge=0, description="Container duration in seconds")


class JobState(str, Enum):
    """Lifecycle of a compile job. States are entered once, in order."""

    CREATED = "created"
    FETCHING = "fetching"
    ANIMATING = "animating"
    NORMALIZING = "normalizing"
    CONCATENATING = "concatenating"
    DONE = "done"
    FAILED = "failed"


class CompileResult(BaseModel):
    """Final compiled video handed back to the transport layer."""

    job_id: str
    output_path: Path
    workspace: Path
    media_type: str = "video/mp4"
    filename: str = "final.mp4"
    clip_count: int = Field(ge=0)
    timings: Dict[str, float] = Field(default_factory=dict, description="Stage durations in seconds")

    @field_serializer("output_path", "workspace")
    def serialize_path(self, value: Path) -> str:
        """Serialize Path to string."""
        return str(value)
