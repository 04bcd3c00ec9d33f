"""Script, image and speech generation collaborators."""

from lumina.core.api.generative.errors import (
    GenerationError,
    ImageGenerationError,
    ScriptGenerationError,
    SpeechGenerationError,
)
from lumina.core.api.generative.factory import create_backend
from lumina.core.api.generative.http_backend import HttpGenerativeBackend
from lumina.core.api.generative.openai_backend import OpenAIGenerativeBackend
from lumina.core.api.generative.protocols import (
    GenerativeBackend,
    ImageGenerator,
    ScriptGenerator,
    SpeechGenerator,
)
from lumina.core.api.generative.script import (
    SCENE_COUNT,
    build_script_prompt,
    parse_script_payload,
)

__all__ = [
    "GenerationError",
    "ScriptGenerationError",
    "ImageGenerationError",
    "SpeechGenerationError",
    "ScriptGenerator",
    "ImageGenerator",
    "SpeechGenerator",
    "GenerativeBackend",
    "OpenAIGenerativeBackend",
    "HttpGenerativeBackend",
    "create_backend",
    "SCENE_COUNT",
    "build_script_prompt",
    "parse_script_payload",
]
