from unittest.mock import AsyncMock, MagicMock

from fastapi import status

from aiprime.core.errors import ApiKeyMissingError
from aiprime.schemas.job import PostPackage
from aiprime.services.gemini_video import RenderedVideo
from aiprime.services.post_package import PostPackageService


def test_generate_video_returns_bytes(client, fake_pipeline):
    fake_pipeline.generate.return_value = (
        "Cinematic cat",
        RenderedVideo(data=b"\x00\x01webm", mime_type="video/webm", uri="u"),
    )

    response = client.post("/api/generate-video", json={"prompt": "cat", "aspectRatio": "1:1", "language": "vi"})

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"\x00\x01webm"
    assert response.headers["content-type"] == "video/webm"
    fake_pipeline.generate.assert_awaited_once_with("cat", "1:1", False, "vi")


def test_generate_video_requires_aspect_ratio(client):
    response = client.post("/api/generate-video", json={"prompt": "cat"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_generate_video_without_api_key(client, fake_pipeline):
    fake_pipeline.generate.side_effect = ApiKeyMissingError()

    response = client.post("/api/generate-video", json={"prompt": "cat", "aspectRatio": "16:9"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["details"] == "errors.apiKeyMissing"


def test_generate_video_classifies_failures(client, fake_pipeline):
    fake_pipeline.generate.side_effect = RuntimeError("503 UNAVAILABLE")

    response = client.post("/api/generate-video", json={"prompt": "cat", "aspectRatio": "16:9"})

    assert response.json() == {"error": "Video generation failed.", "details": "errors.videoGen"}


def test_generate_post_package(client, services):
    post_packages = MagicMock(spec=PostPackageService)
    post_packages.generate = AsyncMock(return_value=PostPackage(title="T", description="D", tags="a, b"))
    services.post_packages = post_packages

    response = client.post(
        "/api/generate-post-package",
        json={"videoPrompt": "cat surfing", "platform": "youtube", "language": "en"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"title": "T", "description": "D", "tags": "a, b"}
    post_packages.generate.assert_awaited_once_with("cat surfing", "youtube", "en")


def test_generate_post_package_failure(client, services):
    post_packages = MagicMock(spec=PostPackageService)
    post_packages.generate = AsyncMock(side_effect=RuntimeError("boom"))
    services.post_packages = post_packages

    response = client.post("/api/generate-post-package", json={"videoPrompt": "cat"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Failed to generate post package.", "details": "errors.generic"}
