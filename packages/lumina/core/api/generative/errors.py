"""Errors raised by generation backends."""

from __future__ import annotations


class GenerationError(Exception):
    """Base error for a failed script, image or speech request."""


class ScriptGenerationError(GenerationError):
    """Script request failed or returned an unusable script. Fatal to a run."""


class ImageGenerationError(GenerationError):
    """Image request failed on every configured model."""


class SpeechGenerationError(GenerationError):
    """Speech request failed or returned an empty payload."""
