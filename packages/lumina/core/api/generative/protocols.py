"""Collaborator contracts consumed by the asset pipeline."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lumina.core.explainer.models import ExplainerScript


@runtime_checkable
class ScriptGenerator(Protocol):
    """Turns a topic into a structured explainer script."""

    async def generate_script(self, topic: str) -> ExplainerScript:
        """Generate a script for ``topic``.

        Raises:
            ScriptGenerationError: On any failure or malformed response.
        """
        ...


@runtime_checkable
class ImageGenerator(Protocol):
    """Renders one scene illustration."""

    async def generate_image(self, prompt: str) -> str:
        """Generate an image for ``prompt``.

        Returns:
            Displayable reference (data URI or URL).

        Raises:
            ImageGenerationError: If no model produced an image.
        """
        ...


@runtime_checkable
class SpeechGenerator(Protocol):
    """Synthesizes narration audio."""

    async def generate_speech(self, text: str) -> str:
        """Generate speech for ``text``.

        Returns:
            Base64-encoded raw PCM (24 kHz, mono, 16-bit).

        Raises:
            SpeechGenerationError: On any failure.
        """
        ...


@runtime_checkable
class GenerativeBackend(ScriptGenerator, ImageGenerator, SpeechGenerator, Protocol):
    """All three collaborators behind one object."""

    async def aclose(self) -> None:
        """Release network resources held by the backend."""
        ...
