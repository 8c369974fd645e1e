"""
Video Generation API Routes
One-shot generation endpoints: enhance + render a video, and build post packages.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response

from aiprime.api.deps import get_pipeline, get_post_packages
from aiprime.core.errors import ApiKeyMissingError, ErrorKey, PipelineError, classify_error
from aiprime.schemas.job import PostPackage
from aiprime.schemas.video import PostPackageRequest, VideoGenerateRequest
from aiprime.services.gemini_video import VideoPipeline
from aiprime.services.post_package import PostPackageService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-video", response_class=Response)
async def generate_video(
    request: VideoGenerateRequest,
    pipeline: VideoPipeline = Depends(get_pipeline),
):
    """
    Generate a video in a single call.

    The prompt is enhanced, rendered with Veo (the server polls the
    long-running operation) and the raw video bytes are returned with the
    content type of the download.
    """
    start_time = datetime.utcnow()

    try:
        enhanced_prompt, video = await pipeline.generate(
            request.prompt,
            request.aspect_ratio,
            request.is_8k,
            request.language,
        )
    except ApiKeyMissingError:
        raise
    except Exception as e:
        logger.error(f"[Video API] Generation failed: {e}", exc_info=True)
        raise PipelineError(
            "Video generation failed.", error_key=classify_error(e, ErrorKey.VIDEO_GEN)
        ) from e

    generation_time = (datetime.utcnow() - start_time).total_seconds()
    logger.info(f"[Video API] Video generated in {generation_time:.1f}s ({len(video.data)} bytes)")

    return Response(content=video.data, media_type=video.mime_type)


@router.post("/generate-post-package", response_model=PostPackage)
async def generate_post_package(
    request: PostPackageRequest,
    post_packages: PostPackageService = Depends(get_post_packages),
):
    """Generate title, description and tags for a video concept."""
    try:
        return await post_packages.generate(request.video_prompt, request.platform, request.language)
    except ApiKeyMissingError:
        raise
    except Exception as e:
        logger.error(f"[Post Package API] Generation failed: {e}", exc_info=True)
        raise PipelineError(
            "Failed to generate post package.", error_key=classify_error(e, ErrorKey.GENERIC)
        ) from e
