"""Generation backend speaking the ``/api/generate-*`` JSON endpoints.

Endpoints (all POST, JSON in and out):
- ``/api/generate-script``  ``{"topic"}``  -> ExplainerScript JSON
- ``/api/generate-image``   ``{"prompt"}`` -> ``{"image": "<data URI or URL>"}``
- ``/api/generate-speech``  ``{"text"}``   -> ``{"audio": "<base64 PCM>"}``
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, Field

from lumina.core.api.generative.errors import (
    GenerationError,
    ImageGenerationError,
    ScriptGenerationError,
    SpeechGenerationError,
)
from lumina.core.api.generative.script import SCENE_COUNT, parse_script_payload
from lumina.core.api.http import ApiError, AsyncApiClient, HttpClientConfig
from lumina.core.explainer.models import ExplainerScript

logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)

SCRIPT_PATH = "/api/generate-script"
IMAGE_PATH = "/api/generate-image"
SPEECH_PATH = "/api/generate-speech"


class ImageResponse(BaseModel):
    image: str = Field(min_length=1)


class SpeechResponse(BaseModel):
    audio: str = Field(min_length=1)


class HttpGenerativeBackend:
    """Remote generation service client.

    Args:
        client: Configured AsyncApiClient pointing at the service.
        scene_count: Number of scenes a script must contain (None accepts any).

    Example:
        >>> config = HttpClientConfig(base_url="https://lumina.example.com")
        >>> backend = HttpGenerativeBackend(AsyncApiClient(config))
        >>> script = await backend.generate_script("Black Holes")
    """

    def __init__(self, client: AsyncApiClient, *, scene_count: int | None = SCENE_COUNT) -> None:
        self._client = client
        self._scene_count = scene_count

    @classmethod
    def from_base_url(
        cls,
        base_url: str,
        *,
        timeout_s: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpGenerativeBackend:
        """Build a backend with its own HTTP client."""
        config = HttpClientConfig(base_url=base_url, timeout_s=timeout_s)
        return cls(AsyncApiClient(config, transport=transport))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        error_type: type[GenerationError],
        model: type[TModel] | None = None,
    ) -> Any:
        try:
            if model is None:
                return await self._client.post_json(path, body)
            return await self._client.post_model(path, body, model)
        except ApiError as e:
            raise error_type(f"{path} failed: {e}") from e

    async def generate_script(self, topic: str) -> ExplainerScript:
        """Request a script for ``topic``.

        Raises:
            ScriptGenerationError: On non-2xx status, transport failure or malformed body.
        """
        data = await self._post(SCRIPT_PATH, {"topic": topic}, ScriptGenerationError)
        return parse_script_payload(data, self._scene_count)

    async def generate_image(self, prompt: str) -> str:
        """Request an image for ``prompt``.

        Raises:
            ImageGenerationError: On non-2xx status, transport failure or malformed body.
        """
        reply = await self._post(
            IMAGE_PATH, {"prompt": prompt}, ImageGenerationError, ImageResponse
        )
        return reply.image

    async def generate_speech(self, text: str) -> str:
        """Request narration for ``text`` as base64 PCM.

        Raises:
            SpeechGenerationError: On non-2xx status, transport failure or malformed body.
        """
        reply = await self._post(
            SPEECH_PATH, {"text": text}, SpeechGenerationError, SpeechResponse
        )
        return reply.audio
