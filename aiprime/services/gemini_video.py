"""
Gemini Video Pipeline
Prompt enhancement with Gemini text models and video synthesis with Veo.

Flow:
1. enhance_prompt: rewrite a terse idea (or product URL) into a cinematic prompt
2. render: submit to Veo, poll the long-running operation, download the video
Documentation: https://ai.google.dev/gemini-api/docs/video
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from google import genai
from google.genai import types

from aiprime.core.config import Settings, settings as default_settings
from aiprime.core.errors import (
    ApiKeyMissingError,
    PromptRejectedError,
    VideoDownloadError,
    VideoGenerationError,
)
from aiprime.schemas.job import AspectRatio, Language

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"(http|https|ftp|ftps)://[a-zA-Z0-9\-.]+\.[a-zA-Z]{2,3}(/\S*)?")

QUALITY_PREFIX_8K = "8K, Ultra HD, highest fidelity, photorealistic, cinematic. "


def looks_like_url(text: str) -> bool:
    """True when the prompt contains a web address (product page, article, ...)."""
    return bool(URL_PATTERN.search(text or ""))


def language_directive(language: Optional[Language]) -> str:
    return "Respond in Vietnamese." if language == Language.VI else "Respond in English."


def build_video_prompt(enhanced_prompt: str, is_8k: bool) -> str:
    """Prefix the quality boost used for 8K requests."""
    return f"{QUALITY_PREFIX_8K}{enhanced_prompt}" if is_8k else enhanced_prompt


@dataclass
class RenderedVideo:
    """Downloaded video returned by the pipeline."""
    data: bytes
    mime_type: str
    uri: str


class VideoPrompts:
    """System instructions for the enhancement call."""

    ENHANCE = (
        "You are an expert prompt engineer for VEO, a text-to-video model. "
        "Rewrite the user's simple idea into one detailed, cinematic video prompt. "
        "Describe the subject, action, setting, camera movement, lens, lighting, "
        "color grade, mood and ambient sound in a single flowing paragraph. "
        "Keep it under 150 words and make it safe for general audiences. "
        "The final output must be ONLY the generated prompt text."
    )

    ENHANCE_FROM_URL = (
        "You are an expert prompt engineer for VEO, a text-to-video model, and a "
        "product marketer. Use Google Search to analyze the content at the provided "
        "URL: identify the product, its key features and its target audience. "
        "Then write one detailed, cinematic video prompt for a short promotional "
        "video showcasing it, describing scenes, camera movement, lighting and mood. "
        "The final output must be ONLY the generated prompt text."
    )


class VideoPipeline:
    """
    Enhancement + render pipeline on top of the google-genai SDK.

    The client is created on first use so a missing API key surfaces as
    ApiKeyMissingError on the request that needs it, not at startup.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[genai.Client] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = config or default_settings
        self._client = client
        self._transport = transport
        self._sleep = asyncio.sleep

    @property
    def api_key(self) -> str:
        if not self.settings.GEMINI_API_KEY:
            raise ApiKeyMissingError()
        return self.settings.GEMINI_API_KEY

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Initialized Gemini client (text: {self.settings.TEXT_MODEL}, video: {self.settings.VEO_MODEL})")
        return self._client

    async def enhance_prompt(self, prompt: str, language: Optional[Language] = None) -> str:
        """
        Rewrite a short idea into a detailed cinematic prompt.

        Prompts that contain a URL are grounded with Google Search so the
        model can read the product page first.
        """
        if looks_like_url(prompt):
            system_instruction = VideoPrompts.ENHANCE_FROM_URL
            contents = f"Analyze this product URL and create a video prompt: {prompt}"
            tools = [types.Tool(google_search=types.GoogleSearch())]
        else:
            system_instruction = VideoPrompts.ENHANCE
            contents = f'User\'s simple idea: "{prompt}"'
            tools = None

        config = types.GenerateContentConfig(
            system_instruction=f"{system_instruction} {language_directive(language)}",
            tools=tools,
        )

        logger.info(f"Enhancing prompt (url={tools is not None}): {prompt[:80]}")
        response = await self.client.aio.models.generate_content(
            model=self.settings.TEXT_MODEL,
            contents=contents,
            config=config,
        )

        enhanced = (response.text or prompt).strip()
        logger.info(f"Enhanced prompt: {enhanced[:150]}...")
        return enhanced

    async def _wait_for_operation(self, operation):
        """Poll a long-running Veo operation until it reports done."""
        started = time.monotonic()
        max_wait = self.settings.VEO_MAX_WAIT_TIME

        while not operation.done:
            elapsed = time.monotonic() - started
            if max_wait and elapsed >= max_wait:
                raise VideoGenerationError(
                    f"Video generation timed out after {elapsed:.0f}s (operation {operation.name})"
                )
            logger.info(f"Waiting for video operation {operation.name} ({elapsed:.0f}s elapsed)")
            await self._sleep(self.settings.VEO_POLL_INTERVAL)
            operation = await self.client.aio.operations.get(operation)

        return operation

    @staticmethod
    def _extract_video_uri(operation) -> str:
        if operation.error:
            message = operation.error.get("message") if isinstance(operation.error, dict) else str(operation.error)
            raise VideoGenerationError(f"Video generation failed: {message}")

        response = operation.response
        videos = getattr(response, "generated_videos", None) or []
        if not videos:
            reasons = getattr(response, "rai_media_filtered_reasons", None)
            if reasons:
                raise PromptRejectedError(f"Video blocked by safety filters: {'; '.join(reasons)}")
            raise VideoGenerationError("Video generation completed, but no URL was returned.")

        uri = videos[0].video.uri if videos[0].video else None
        if not uri:
            raise VideoGenerationError("Video generation completed, but no URL was returned.")
        return uri

    async def download(self, uri: str) -> RenderedVideo:
        """Fetch the generated video; the signed link needs the API key as ``key``."""
        async with httpx.AsyncClient(
            timeout=self.settings.VIDEO_DOWNLOAD_TIMEOUT,
            follow_redirects=True,
            transport=self._transport,
        ) as http:
            try:
                response = await http.get(uri, params={"key": self.api_key})
            except httpx.HTTPError as e:
                raise VideoDownloadError(f"Failed to fetch video from generated link: {e}") from e

        if response.status_code >= 400:
            raise VideoDownloadError(
                f"Failed to fetch video from generated link. Status: {response.status_code}"
            )

        mime_type = response.headers.get("content-type", "video/mp4").split(";")[0].strip()
        logger.info(f"Downloaded video ({len(response.content)} bytes, {mime_type})")
        return RenderedVideo(data=response.content, mime_type=mime_type or "video/mp4", uri=uri)

    async def render(self, prompt: str, aspect_ratio: AspectRatio, is_8k: bool = False) -> RenderedVideo:
        """Submit a prompt to Veo, wait for the operation, and download the result."""
        video_prompt = build_video_prompt(prompt, is_8k)
        config = types.GenerateVideosConfig(
            number_of_videos=1,
            aspect_ratio=AspectRatio(aspect_ratio).value,
            resolution="1080p" if is_8k else "720p",  # 1080p is the highest Veo offers
        )

        logger.info(f"Submitting video generation to {self.settings.VEO_MODEL} ({config.aspect_ratio}, {config.resolution})")
        operation = await self.client.aio.models.generate_videos(
            model=self.settings.VEO_MODEL,
            prompt=video_prompt,
            config=config,
        )

        operation = await self._wait_for_operation(operation)
        uri = self._extract_video_uri(operation)
        return await self.download(uri)

    async def generate(
        self,
        prompt: str,
        aspect_ratio: AspectRatio,
        is_8k: bool = False,
        language: Optional[Language] = None,
    ) -> Tuple[str, RenderedVideo]:
        """Enhance then render. Returns the enhanced prompt and the video."""
        if not self.settings.GEMINI_API_KEY:
            raise ApiKeyMissingError()
        enhanced = await self.enhance_prompt(prompt, language)
        video = await self.render(enhanced, aspect_ratio, is_8k)
        return enhanced, video
