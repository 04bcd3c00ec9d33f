"""Tests for the HTTP generation backend."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from lumina.core.api.generative.errors import (
    ImageGenerationError,
    ScriptGenerationError,
    SpeechGenerationError,
)
from lumina.core.api.generative.http_backend import HttpGenerativeBackend


def _backend(handler) -> HttpGenerativeBackend:
    return HttpGenerativeBackend.from_base_url(
        "https://lumina.example.test", transport=httpx.MockTransport(handler)
    )


class TestGenerateScript:
    @pytest.mark.asyncio
    async def test_posts_topic_and_parses_script(self, script_payload: dict[str, Any]) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=script_payload)

        backend = _backend(handler)
        script = await backend.generate_script("Black Holes")
        await backend.aclose()

        assert seen == {
            "method": "POST",
            "path": "/api/generate-script",
            "body": {"topic": "Black Holes"},
        }
        assert script.title == "Black Holes"
        assert len(script.scenes) == 4

    @pytest.mark.asyncio
    async def test_server_error_raises(self) -> None:
        backend = _backend(lambda request: httpx.Response(500, json={"error": "Internal"}))
        with pytest.raises(ScriptGenerationError, match="generate-script"):
            await backend.generate_script("Black Holes")

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self) -> None:
        backend = _backend(lambda request: httpx.Response(200, json={"title": "only"}))
        with pytest.raises(ScriptGenerationError):
            await backend.generate_script("Black Holes")

    @pytest.mark.asyncio
    async def test_backend_supplied_assets_ignored(self, script_payload: dict[str, Any]) -> None:
        script_payload["scenes"][0]["image"] = "data:image/png;base64,AA=="
        backend = _backend(lambda request: httpx.Response(200, json=script_payload))

        script = await backend.generate_script("Black Holes")
        assert script.scenes[0].image is None


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_returns_image_reference(self, png_data_uri: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/generate-image"
            assert json.loads(request.content) == {"prompt": "A nebula"}
            return httpx.Response(200, json={"image": png_data_uri})

        assert await _backend(handler).generate_image("A nebula") == png_data_uri

    @pytest.mark.asyncio
    async def test_missing_image_field_raises(self) -> None:
        backend = _backend(lambda request: httpx.Response(200, json={"img": "x"}))
        with pytest.raises(ImageGenerationError):
            await backend.generate_image("A nebula")

    @pytest.mark.asyncio
    async def test_network_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ImageGenerationError):
            await _backend(handler).generate_image("A nebula")


class TestGenerateSpeech:
    @pytest.mark.asyncio
    async def test_returns_audio_payload(self, silence_b64: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/generate-speech"
            assert json.loads(request.content) == {"text": "Hello"}
            return httpx.Response(200, json={"audio": silence_b64})

        assert await _backend(handler).generate_speech("Hello") == silence_b64

    @pytest.mark.asyncio
    async def test_non_json_raises(self) -> None:
        backend = _backend(
            lambda request: httpx.Response(200, text="ok", headers={"content-type": "text/plain"})
        )
        with pytest.raises(SpeechGenerationError):
            await backend.generate_speech("Hello")

    @pytest.mark.asyncio
    async def test_empty_audio_raises(self) -> None:
        backend = _backend(lambda request: httpx.Response(200, json={"audio": ""}))
        with pytest.raises(SpeechGenerationError):
            await backend.generate_speech("Hello")
