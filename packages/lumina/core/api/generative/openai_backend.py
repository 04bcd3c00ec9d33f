"""Generation backend calling the OpenAI API directly.

Async-first implementation on ``AsyncOpenAI``:
- Script: Responses API in JSON-object mode, validated into ExplainerScript
- Images: primary model, then a fallback model on any primary failure;
  bytes are verified with Pillow and returned as a data URI
- Speech: raw PCM (24 kHz, mono, 16-bit) returned base64-encoded

Requests are sent once. The image model fallback is the only second attempt.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from io import BytesIO
from typing import Any

from openai import AsyncOpenAI
from PIL import Image, UnidentifiedImageError

from lumina.core.api.generative.errors import (
    ImageGenerationError,
    ScriptGenerationError,
    SpeechGenerationError,
)
from lumina.core.api.generative.script import (
    SCENE_COUNT,
    SCRIPT_SYSTEM_PROMPT,
    build_script_prompt,
    parse_script_payload,
)
from lumina.core.config.models import ModelsConfig
from lumina.core.explainer.models import ExplainerScript

logger = logging.getLogger(__name__)


def _image_request_params(model: str) -> dict[str, Any]:
    """Model-specific request parameters for a landscape, base64 image.

    gpt-image models always return base64 and take ``output_format``;
    dall-e models need ``response_format="b64_json"`` and use their own sizes.

    Args:
        model: Image model name.

    Returns:
        Keyword arguments for ``images.generate`` (excluding prompt).
    """
    if model.startswith("gpt-image"):
        return {"model": model, "n": 1, "size": "1536x1024", "output_format": "jpeg"}
    return {"model": model, "n": 1, "size": "1792x1024", "response_format": "b64_json"}


def _verified_data_uri(raw_bytes: bytes) -> str:
    """Check that bytes decode as an image and render them as a data URI.

    Pure CPU work, safe to run in a thread.

    Raises:
        ImageGenerationError: If Pillow cannot identify the image.
    """
    try:
        with Image.open(BytesIO(raw_bytes)) as img:
            img_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageGenerationError(f"Generated image is not decodable: {e}") from e

    media_type = Image.MIME.get(img_format or "", "image/png")
    encoded = base64.b64encode(raw_bytes).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


class OpenAIGenerativeBackend:
    """Script, image and speech generation via the OpenAI API.

    Args:
        client: AsyncOpenAI client instance (created from ``api_key`` if None).
        api_key: OpenAI API key (uses env var if not provided).
        models: Model selection.
        scene_count: Number of scenes a script must contain.
        timeout: Request timeout in seconds when creating the client.

    Example:
        >>> backend = OpenAIGenerativeBackend(api_key="sk-...")
        >>> script = await backend.generate_script("Black Holes")
        >>> image = await backend.generate_image(script.scenes[0].image_prompt)
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        api_key: str | None = None,
        models: ModelsConfig | None = None,
        scene_count: int = SCENE_COUNT,
        timeout: float = 120.0,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)
        self._models = models or ModelsConfig()
        self._scene_count = scene_count

    async def aclose(self) -> None:
        await self._client.close()

    async def generate_script(self, topic: str) -> ExplainerScript:
        """Generate an explainer script for ``topic``.

        Raises:
            ScriptGenerationError: On API failure, empty output or invalid script.
        """
        try:
            response = await self._client.responses.create(
                model=self._models.script_model,
                input=[
                    {"role": "system", "content": SCRIPT_SYSTEM_PROMPT},
                    {"role": "user", "content": build_script_prompt(topic, self._scene_count)},
                ],
                text={"format": {"type": "json_object"}},
            )
        except Exception as e:
            raise ScriptGenerationError(f"Script request failed: {e}") from e

        content = response.output_text
        if not content:
            raise ScriptGenerationError("Empty response from OpenAI API")

        script = parse_script_payload(content, self._scene_count)
        logger.debug("Generated script %r with %d scenes", script.title, len(script.scenes))
        return script

    async def generate_image(self, prompt: str) -> str:
        """Generate a scene image, falling back to the secondary model on failure.

        Raises:
            ImageGenerationError: If every configured model failed.
        """
        models = [self._models.image_model]
        if self._models.fallback_image_model:
            models.append(self._models.fallback_image_model)

        last_error: Exception | None = None
        for model in models:
            try:
                return await self._generate_image_with(model, prompt)
            except Exception as e:
                last_error = e
                logger.warning("Image model %s failed: %s", model, e)

        raise ImageGenerationError(f"Image generation failed: {last_error}") from last_error

    async def _generate_image_with(self, model: str, prompt: str) -> str:
        response = await self._client.images.generate(
            prompt=prompt,
            **_image_request_params(model),
        )
        if not response.data:
            raise ImageGenerationError("API returned empty data list")
        b64_data = response.data[0].b64_json
        if not b64_data:
            raise ImageGenerationError("API returned empty b64_json")

        raw_bytes = base64.b64decode(b64_data)
        # Pillow decode runs in a thread to avoid blocking the loop
        return await asyncio.to_thread(_verified_data_uri, raw_bytes)

    async def generate_speech(self, text: str) -> str:
        """Synthesize narration as base64 raw PCM.

        Raises:
            SpeechGenerationError: On API failure or empty audio.
        """
        try:
            response = await self._client.audio.speech.create(
                model=self._models.speech_model,
                voice=self._models.voice,
                input=text,
                response_format="pcm",
            )
        except Exception as e:
            raise SpeechGenerationError(f"Speech request failed: {e}") from e

        pcm = response.content
        if not pcm:
            raise SpeechGenerationError("API returned empty audio")
        return base64.b64encode(pcm).decode("ascii")
