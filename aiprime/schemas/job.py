"""
Job Schemas
Pydantic models for production jobs and job API requests.
"""

from enum import Enum
from typing import Annotated, List, Optional
from pydantic import AfterValidator, BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes the dashboard's camelCase JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def _require_text(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be empty")
    return v.strip()


NonEmptyStr = Annotated[str, AfterValidator(_require_text)]


class JobStatus(str, Enum):
    """Production job lifecycle."""
    QUEUED = "Queued"
    GENERATING = "Generating"
    PUBLISHED = "Published"
    FAILED = "Failed"
    SCHEDULED = "Scheduled"


class AspectRatio(str, Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"


class Language(str, Enum):
    EN = "en"
    VI = "vi"


class StatusMessage(str, Enum):
    """Progress message keys written by the job processor."""
    ENHANCING = "aiVideo.generating.enhancing"
    RENDERING = "aiVideo.generating.rendering"
    SUCCESS = "aiVideo.generating.success"


class PostPackage(CamelModel):
    """Title, description and tags for publishing a video."""
    title: str = ""
    description: str = ""
    tags: str = ""  # YouTube: comma-separated keywords; others: hashtags


class ProductionJob(CamelModel):
    """A unit of requested video production work."""
    id: str
    prompt: str  # User's simple input
    enhanced_prompt: Optional[str] = None
    aspect_ratio: AspectRatio
    is_8k: bool = Field(False, alias="is8K")
    language: Optional[Language] = None
    status: JobStatus
    progress: int = Field(0, ge=0, le=100)
    video_url: Optional[str] = None
    post_package: Optional[PostPackage] = None
    scheduled_day: Optional[str] = None
    platform: Optional[str] = None
    status_message_key: Optional[str] = None

    def to_storage(self) -> dict:
        """Serialize with the same keys the browser dashboard persisted."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class JobCreate(CamelModel):
    """Schema for queuing a single video job."""
    prompt: NonEmptyStr = Field(..., description="Short video idea or product URL")
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    is_8k: bool = Field(False, alias="is8K")
    language: Language = Language.EN
    platform: Optional[str] = None


class JobBatchCreate(CamelModel):
    """Schema for queuing one job per target platform."""
    prompt: NonEmptyStr
    platforms: List[NonEmptyStr] = Field(..., min_length=1)
    is_8k: bool = Field(False, alias="is8K")
    language: Optional[Language] = None


class JobSchedule(CamelModel):
    """Schema for scheduling a published job."""
    day: NonEmptyStr = Field(..., description="Publishing day, e.g. Monday")
