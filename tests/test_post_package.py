from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from aiprime.core.errors import ErrorKey, PipelineError
from aiprime.schemas.job import AspectRatio, Language
from aiprime.services.gemini_video import VideoPipeline
from aiprime.services.post_package import PostPackageService, aspect_ratio_for_platform

AFFILIATES = (
    'Here you go:\n[{"productName": "Cat Tree", "affiliateLink": "https://shop.example/tree", '
    '"callToAction": "Grab one today"}]'
)
PACKAGE = '{"title": "Cat surfs", "description": "A cat rides a wave.", "tags": "#cat #surf"}'


def reply(text):
    return SimpleNamespace(text=text)


@pytest.fixture
def fake_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=[reply(AFFILIATES), reply(PACKAGE)])
    return client


@pytest.fixture
def service(test_settings, fake_client):
    return PostPackageService(VideoPipeline(test_settings, client=fake_client))


@pytest.mark.parametrize("platform, expected", [
    ("YouTube", AspectRatio.LANDSCAPE),
    ("linkedin", AspectRatio.LANDSCAPE),
    ("X", AspectRatio.LANDSCAPE),
    ("TikTok", AspectRatio.PORTRAIT),
    ("Instagram", AspectRatio.PORTRAIT),
    ("Facebook", AspectRatio.SQUARE),
    (None, AspectRatio.SQUARE),
])
def test_aspect_ratio_for_platform(platform, expected):
    assert aspect_ratio_for_platform(platform) == expected


@pytest.mark.asyncio
async def test_generate_with_affiliates(service, fake_client):
    package = await service.generate("a cat surfing", "YouTube", Language.EN)

    assert package.title == "Cat surfs"
    assert package.tags == "#cat #surf"

    search_call, package_call = fake_client.aio.models.generate_content.call_args_list
    assert search_call.kwargs["config"].tools[0].google_search is not None
    config = package_call.kwargs["config"]
    assert "YouTube SEO expert" in config.system_instruction
    assert "https://shop.example/tree" in config.system_instruction
    assert "English language" in config.system_instruction
    assert config.response_mime_type == "application/json"


@pytest.mark.asyncio
async def test_generate_survives_affiliate_failure(service, fake_client):
    fake_client.aio.models.generate_content.side_effect = [RuntimeError("search down"), reply(PACKAGE)]

    package = await service.generate("a cat surfing", "tiktok")

    assert package.title == "Cat surfs"
    config = fake_client.aio.models.generate_content.call_args.kwargs["config"]
    assert "TikTok" in config.system_instruction
    assert "affiliate" not in config.system_instruction


@pytest.mark.asyncio
async def test_find_affiliate_opportunities_without_json(service, fake_client):
    fake_client.aio.models.generate_content.side_effect = [reply("No products found.")]
    assert await service.find_affiliate_opportunities("cats") == []


@pytest.mark.asyncio
async def test_invalid_json_reply(service, fake_client):
    fake_client.aio.models.generate_content.side_effect = [reply("[]"), reply("not json")]

    with pytest.raises(PipelineError) as exc_info:
        await service.generate("a cat surfing")
    assert exc_info.value.error_key == ErrorKey.INVALID_RESPONSE
