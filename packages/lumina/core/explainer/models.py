"""Explainer presentation models.

Defines the data handed between script generation, asset orchestration and
playback:
- Scene: one unit of the presentation (heading, explanation, image, voice-over)
- ExplainerScript: title, summary and ordered scenes (playback order)
- GenerationProgress: point-in-time progress snapshot
- AssetKind / AppState / ReadyReason: enums for the orchestration flow
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from lumina.core.media.store import MediaHandle


class AssetKind(str, Enum):
    """Kind of generated asset attached to a scene."""

    IMAGE = "image"
    AUDIO = "audio"


class AppState(str, Enum):
    """Lifecycle of one generation-and-playback session.

    Attributes:
        IDLE: Waiting for a topic.
        GENERATING_SCRIPT: Script request in flight.
        LOADING_ASSETS: Per-scene image/speech requests dispatched, not yet ready to play.
        PLAYING: Ready signal fired; later scenes may still be loading.
        ERROR: Script generation failed; only reset() recovers.
    """

    IDLE = "IDLE"
    GENERATING_SCRIPT = "GENERATING_SCRIPT"
    LOADING_ASSETS = "LOADING_ASSETS"
    PLAYING = "PLAYING"
    ERROR = "ERROR"


class ReadyReason(str, Enum):
    """Which condition released the ready-to-play signal."""

    FIRST_SCENE = "first_scene"
    DEADLINE = "deadline"


class AssetAlreadySetError(RuntimeError):
    """Raised when populating a scene asset handle that is already populated."""


class GenerationProgress(BaseModel):
    """Progress snapshot shown while a presentation is being prepared."""

    model_config = ConfigDict(frozen=True)

    message: str = ""
    percent: float = Field(default=0.0, ge=0.0, le=100.0)


class Scene(BaseModel):
    """One scene of an explainer script.

    Text fields are fixed when the script is created. The two asset handles
    start empty and are each filled at most once via :meth:`with_asset`.

    Attributes:
        id: Identifier, unique within the script.
        heading: Scene title.
        explanation: On-screen explanation text.
        image_prompt: Prompt for the scene illustration.
        voiceover_text: Narration text for speech synthesis.
        image: Displayable image reference (data URI or URL), once generated.
        audio: Playable WAV handle, once generated.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    heading: str = Field(min_length=1)
    explanation: str = Field(min_length=1)
    image_prompt: str = Field(min_length=1)
    voiceover_text: str = Field(min_length=1)
    image: str | None = None
    audio: MediaHandle | None = None

    def has_asset(self, kind: AssetKind) -> bool:
        """Whether the handle for ``kind`` is populated."""
        if kind is AssetKind.IMAGE:
            return self.image is not None
        return self.audio is not None

    @property
    def is_complete(self) -> bool:
        """Both image and audio handles are populated."""
        return self.image is not None and self.audio is not None

    def with_asset(self, kind: AssetKind, value: str | MediaHandle) -> Scene:
        """Return a copy of this scene with one asset handle populated.

        Raises:
            AssetAlreadySetError: If the handle for ``kind`` is already set.
            TypeError: If ``value`` does not match the asset kind.
        """
        if self.has_asset(kind):
            raise AssetAlreadySetError(f"Scene {self.id} already has its {kind.value} populated")
        if kind is AssetKind.IMAGE:
            if not isinstance(value, str):
                raise TypeError("Image assets must be a string reference")
            return self.model_copy(update={"image": value})
        if not isinstance(value, MediaHandle):
            raise TypeError("Audio assets must be a MediaHandle")
        return self.model_copy(update={"audio": value})


class ExplainerScript(BaseModel):
    """A generated explainer: title, summary and ordered scenes.

    Scene order is playback order. Scenes are replaced (never edited in place)
    when an asset arrives, so a reference obtained from :meth:`snapshot` never
    changes underneath an observer.

    Example:
        >>> script = ExplainerScript.model_validate(payload)
        >>> script.populate(script.scenes[0].id, AssetKind.IMAGE, "data:image/png;base64,...")
        >>> script.first_scene_ready
        False
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    scenes: list[Scene] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_scene_ids(self) -> ExplainerScript:
        ids = [scene.id for scene in self.scenes]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Scene ids must be unique, got {ids}")
        return self

    def index_of(self, scene_id: int) -> int:
        """Position of a scene in playback order.

        Raises:
            KeyError: If no scene has this id.
        """
        for index, scene in enumerate(self.scenes):
            if scene.id == scene_id:
                return index
        raise KeyError(f"No scene with id {scene_id}")

    def scene(self, scene_id: int) -> Scene:
        """Look up a scene by id."""
        return self.scenes[self.index_of(scene_id)]

    def populate(self, scene_id: int, kind: AssetKind, value: str | MediaHandle) -> Scene:
        """Populate one asset handle of one scene.

        The scene is swapped for its updated copy in a single assignment.

        Returns:
            The updated scene.
        """
        index = self.index_of(scene_id)
        updated = self.scenes[index].with_asset(kind, value)
        self.scenes[index] = updated
        return updated

    @property
    def first_scene_ready(self) -> bool:
        """Both assets of the first scene in playback order are populated."""
        return self.scenes[0].is_complete

    def audio_handles(self) -> list[MediaHandle]:
        """All populated audio handles, in scene order."""
        return [scene.audio for scene in self.scenes if scene.audio is not None]

    def snapshot(self) -> ExplainerScript:
        """Independent copy for observers."""
        return self.model_copy(deep=True)
