"""Script prompt construction and response validation shared by backends."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from lumina.core.api.generative.errors import ScriptGenerationError
from lumina.core.explainer.models import ExplainerScript

SCENE_COUNT = 4

SCRIPT_SYSTEM_PROMPT = (
    "You write scripts for short narrated slideshow explainers. "
    "Respond with a single JSON object with keys 'title', 'summary' and 'scenes'. "
    "Each scene is an object with keys 'id' (integer), 'heading', 'explanation', "
    "'imagePrompt' and 'voiceoverText', all non-empty."
)


def build_script_prompt(topic: str, scene_count: int = SCENE_COUNT) -> str:
    """Build the user prompt requesting an explainer script.

    Args:
        topic: Subject of the explainer.
        scene_count: Number of scenes to request.

    Returns:
        Prompt text.
    """
    return (
        f'Create a visually engaging, educational explainer script about: "{topic}".\n'
        "The audience is general public. Keep it concise, exciting, and visual.\n"
        f"Create exactly {scene_count} distinct scenes.\n"
        "For 'imagePrompt', describe a high-quality, photorealistic, cinematic 3D render "
        "or illustration style image that represents the concept abstractly or concretely."
    )


def parse_script_payload(
    data: str | bytes | dict[str, Any],
    expected_scene_count: int | None = SCENE_COUNT,
) -> ExplainerScript:
    """Validate a backend response into an ExplainerScript.

    Args:
        data: Raw JSON text or an already-decoded object.
        expected_scene_count: Required number of scenes (None accepts any count >= 1).

    Returns:
        Validated script with empty asset handles.

    Raises:
        ScriptGenerationError: If the payload is not JSON, fails validation,
            or has the wrong number of scenes.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ScriptGenerationError(f"Script response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ScriptGenerationError(
            f"Script response must be a JSON object, got {type(data).__name__}"
        )

    # Asset handles are never accepted from the backend
    scenes = data.get("scenes")
    if isinstance(scenes, list):
        data = {
            **data,
            "scenes": [
                {k: v for k, v in scene.items() if k not in ("image", "audio")}
                if isinstance(scene, dict)
                else scene
                for scene in scenes
            ],
        }

    try:
        script = ExplainerScript.model_validate(data)
    except ValidationError as e:
        raise ScriptGenerationError(f"Script response failed validation: {e}") from e

    if expected_scene_count is not None and len(script.scenes) != expected_scene_count:
        raise ScriptGenerationError(
            f"Expected {expected_scene_count} scenes, got {len(script.scenes)}"
        )
    return script
