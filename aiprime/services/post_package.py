"""
Post Package Service
Generates publishing metadata (title, description, tags) for a video concept,
weaving in affiliate products found through a search-grounded Gemini call.
"""

import json
import logging
import re
from typing import List, Optional

from google.genai import types

from aiprime.core.errors import ErrorKey, PipelineError
from aiprime.schemas.job import AspectRatio, Language, PostPackage
from aiprime.services.gemini_video import VideoPipeline

logger = logging.getLogger(__name__)

JSON_ARRAY_PATTERN = re.compile(r"(\[[\s\S]*\])")

PLATFORM_ASPECT_RATIOS = {
    "youtube": AspectRatio.LANDSCAPE,
    "linkedin": AspectRatio.LANDSCAPE,
    "x": AspectRatio.LANDSCAPE,
    "tiktok": AspectRatio.PORTRAIT,
    "instagram": AspectRatio.PORTRAIT,  # Reels / Stories
}


def aspect_ratio_for_platform(platform: Optional[str]) -> AspectRatio:
    """Native aspect ratio for a platform; square for everything else."""
    return PLATFORM_ASPECT_RATIOS.get((platform or "").lower(), AspectRatio.SQUARE)


def response_language_instruction(language: Optional[Language]) -> str:
    if language is None:
        return ""
    name = "Vietnamese" if language == Language.VI else "English"
    return f"\nYour entire response, including all text within any JSON output, must be in the {name} language."


PLATFORM_INSTRUCTIONS = {
    "youtube": {
        "instruction": (
            "You are a YouTube SEO expert. Write a click-worthy title under 70 characters, "
            "a keyword-rich description with a hook in the first two lines and a call to action."
        ),
        "tags": "A comma-separated string of 15-20 relevant SEO keywords.",
    },
    "tiktok": {
        "instruction": (
            "You are a TikTok viral marketing expert. Write a punchy hook as the title and "
            "a short, energetic caption as the description."
        ),
        "tags": "A single string of 5-7 relevant hashtags, each starting with #, separated by spaces.",
    },
    "default": {
        "instruction": (
            "You are a social media SEO expert. Write an engaging title and a concise "
            "description that drives engagement."
        ),
        "tags": "A single string of 10-15 relevant tags, each starting with #, separated by spaces.",
    },
}


class PostPackageService:
    """Metadata packaging for finished videos."""

    def __init__(self, pipeline: VideoPipeline):
        self.pipeline = pipeline

    @property
    def model(self) -> str:
        return self.pipeline.settings.TEXT_MODEL

    async def find_affiliate_opportunities(self, topic: str, language: Optional[Language] = None) -> List[dict]:
        """Search for 2-3 affiliate products for a topic. Never raises; returns [] on failure."""
        try:
            response = await self.pipeline.client.aio.models.generate_content(
                model=self.model,
                contents=f'For the topic "{topic}", find 2-3 affiliate products.',
                config=types.GenerateContentConfig(
                    system_instruction=(
                        "You are an affiliate marketer. Return a JSON array of objects with "
                        f'"productName", "affiliateLink", and "callToAction".{response_language_instruction(language)}'
                    ),
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
            match = JSON_ARRAY_PATTERN.search((response.text or "").strip())
            if not match:
                return []
            items = json.loads(match.group(0))
            return [item for item in items if isinstance(item, dict)]
        except Exception as e:
            logger.warning(f"Affiliate lookup failed for {topic[:60]!r}: {e}")
            return []

    async def generate(
        self,
        video_prompt: str,
        platform: Optional[str] = None,
        language: Optional[Language] = None,
    ) -> PostPackage:
        """Create a title/description/tags package tailored to ``platform``."""
        instructions = PLATFORM_INSTRUCTIONS.get((platform or "").lower(), PLATFORM_INSTRUCTIONS["default"])

        affiliate_instruction = ""
        opportunities = await self.find_affiliate_opportunities(video_prompt, language)
        if opportunities:
            lines = "\n".join(
                f'- Product: "{op.get("productName", "")}"\n'
                f'  - Link: {op.get("affiliateLink", "")}\n'
                f'  - CTA: "{op.get("callToAction", "")}"'
                for op in opportunities
            )
            affiliate_instruction = (
                "\n\nIMPORTANT: You must naturally incorporate these affiliate links and "
                f"calls to action into the description:\n\n{lines}"
            )

        response = await self.pipeline.client.aio.models.generate_content(
            model=self.model,
            contents=f'Generate a post package for platform: {platform or "generic"}.\n\nVideo Concept: "{video_prompt}"',
            config=types.GenerateContentConfig(
                system_instruction=(
                    f"{instructions['instruction']}{affiliate_instruction}"
                    f"{response_language_instruction(language)}"
                ),
                response_mime_type="application/json",
                response_schema=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "title": types.Schema(type=types.Type.STRING),
                        "description": types.Schema(type=types.Type.STRING),
                        "tags": types.Schema(type=types.Type.STRING, description=instructions["tags"]),
                    },
                ),
            ),
        )

        try:
            data = json.loads((response.text or "{}").strip())
        except ValueError as e:
            raise PipelineError(
                "Model returned an invalid post package.", error_key=ErrorKey.INVALID_RESPONSE
            ) from e
        if not isinstance(data, dict):
            raise PipelineError("Model returned an invalid post package.", error_key=ErrorKey.INVALID_RESPONSE)

        logger.info(f"Generated post package for {platform or 'generic'}: {str(data.get('title', ''))[:60]}")
        return PostPackage.model_validate(data)
