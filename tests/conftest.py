"""Shared pytest fixtures for lumina tests."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable, Iterable
from io import BytesIO
from pathlib import Path
from typing import Any

from PIL import Image
import pytest

from lumina.core.api.generative.errors import (
    ImageGenerationError,
    ScriptGenerationError,
    SpeechGenerationError,
)
from lumina.core.explainer.models import ExplainerScript
from lumina.core.media.store import MediaStore

# 2400 bytes of silence (1200 samples at 16-bit)
SILENCE_PCM = bytes(2400)
SILENCE_PCM_B64 = base64.b64encode(SILENCE_PCM).decode("ascii")


def make_png_bytes(width: int = 8, height: int = 8) -> bytes:
    """Create a tiny valid PNG image."""
    img = Image.new("RGB", (width, height), (20, 40, 200))
    buf = BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def make_png_data_uri() -> str:
    return "data:image/png;base64," + base64.b64encode(make_png_bytes()).decode("ascii")


def make_script_payload(scene_count: int = 4) -> dict[str, Any]:
    """Script JSON as a backend returns it (camelCase keys)."""
    return {
        "title": "Black Holes",
        "summary": "Where gravity wins.",
        "scenes": [
            {
                "id": i,
                "heading": f"Heading {i}",
                "explanation": f"Explanation {i}",
                "imagePrompt": f"Prompt {i}",
                "voiceoverText": f"Voiceover {i}",
            }
            for i in range(1, scene_count + 1)
        ],
    }


class FakeBackend:
    """In-memory generative backend with scripted delays and failures.

    Image and speech behaviour is keyed by the prompt / voice-over text, e.g.
    ``"Prompt 3"`` or ``"Voiceover 1"``.
    """

    def __init__(
        self,
        script_payload: dict[str, Any] | None = None,
        *,
        script_error: Exception | None = None,
        script_delay_s: float = 0.0,
        image_failures: Iterable[str] = (),
        speech_failures: Iterable[str] = (),
        delays: dict[str, float] | None = None,
        speech_payloads: dict[str, str] | None = None,
    ) -> None:
        self.script_payload = script_payload or make_script_payload()
        self.script_error = script_error
        self.script_delay_s = script_delay_s
        self.image_failures = set(image_failures)
        self.speech_failures = set(speech_failures)
        self.delays = delays or {}
        self.speech_payloads = speech_payloads or {}
        self.script_calls: list[str] = []
        self.image_calls: list[str] = []
        self.speech_calls: list[str] = []
        self.closed = False
        self.image_uri = make_png_data_uri()

    async def generate_script(self, topic: str) -> ExplainerScript:
        self.script_calls.append(topic)
        await asyncio.sleep(self.script_delay_s)
        if self.script_error is not None:
            raise self.script_error
        return ExplainerScript.model_validate(self.script_payload)

    async def generate_image(self, prompt: str) -> str:
        self.image_calls.append(prompt)
        await asyncio.sleep(self.delays.get(prompt, 0.0))
        if prompt in self.image_failures:
            raise ImageGenerationError(f"no image for {prompt}")
        return self.image_uri

    async def generate_speech(self, text: str) -> str:
        self.speech_calls.append(text)
        await asyncio.sleep(self.delays.get(text, 0.0))
        if text in self.speech_failures:
            raise SpeechGenerationError(f"no speech for {text}")
        return self.speech_payloads.get(text, SILENCE_PCM_B64)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def script_payload() -> dict[str, Any]:
    return make_script_payload()


@pytest.fixture
def script(script_payload: dict[str, Any]) -> ExplainerScript:
    return ExplainerScript.model_validate(script_payload)


@pytest.fixture
def media_store() -> MediaStore:
    return MediaStore()


@pytest.fixture
def silence_b64() -> str:
    return SILENCE_PCM_B64


@pytest.fixture
def png_data_uri() -> str:
    return make_png_data_uri()


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def failing_script_backend() -> FakeBackend:
    return FakeBackend(script_error=ScriptGenerationError("backend returned 500"))


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "lumina_history.json"
