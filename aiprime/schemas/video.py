"""
Video Generation Schemas
Pydantic models for the one-shot generation endpoints.
"""

from typing import Optional
from pydantic import Field

from aiprime.schemas.job import AspectRatio, CamelModel, Language, NonEmptyStr


class VideoGenerateRequest(CamelModel):
    """Schema for a synchronous enhance-and-render request."""
    prompt: NonEmptyStr = Field(..., description="Short video idea or product URL")
    aspect_ratio: AspectRatio = Field(..., description="16:9, 9:16 or 1:1")
    is_8k: bool = Field(False, alias="is8K", description="Highest fidelity (renders at 1080p)")
    language: Optional[Language] = None


class PostPackageRequest(CamelModel):
    """Schema for generating publishing metadata for a video concept."""
    video_prompt: NonEmptyStr
    platform: Optional[str] = Field(None, description="youtube, tiktok, ...")
    language: Optional[Language] = None
