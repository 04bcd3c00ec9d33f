"""Asset orchestration for explainer scripts.

Fans out one image request and one speech request per scene as asyncio tasks,
applies each result to its scene as it settles, tracks progress, and decides
when playback may begin.

Readiness is a race between two tasks: a poll that resolves once the first
scene has both assets, and a hard deadline. Whichever finishes first releases
the ready signal; the other is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from lumina.core.api.generative.protocols import ImageGenerator, SpeechGenerator
from lumina.core.audio.wav import create_wav_handle
from lumina.core.explainer.models import (
    AssetKind,
    ExplainerScript,
    GenerationProgress,
    ReadyReason,
    Scene,
)
from lumina.core.media.store import MediaHandle, MediaStore

logger = logging.getLogger(__name__)

# Script generation owns the first fifth of the progress bar
DISPATCH_PERCENT = 20.0
ASSET_PERCENT_SPAN = 80.0

DEFAULT_POLL_INTERVAL_S = 0.5
DEFAULT_READY_TIMEOUT_S = 15.0

ProgressCallback = Callable[[GenerationProgress], None]
SceneCallback = Callable[[Scene], None]


class RunDiscardedError(RuntimeError):
    """Raised when waiting on a run that was discarded before becoming ready."""


class AssetFailure(BaseModel):
    """One asset request that settled with an error."""

    model_config = ConfigDict(frozen=True)

    scene_id: int
    kind: AssetKind
    error: str


class RunSummary(BaseModel):
    """Outcome of an orchestration run once every request has settled."""

    model_config = ConfigDict(frozen=True)

    total: int
    images_succeeded: int = 0
    images_failed: int = 0
    audio_succeeded: int = 0
    audio_failed: int = 0
    ready_reason: ReadyReason | None = None
    failures: list[AssetFailure] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return self.images_succeeded + self.audio_succeeded

    @property
    def failed(self) -> int:
        return self.images_failed + self.audio_failed


def _progress_percent(completed: int, total: int) -> float:
    return DISPATCH_PERCENT + (completed / total) * ASSET_PERCENT_SPAN


def _success_message(index: int, kind: AssetKind) -> str:
    verb = "Visualizing" if kind is AssetKind.IMAGE else "Voicing"
    return f"{verb} Scene {index + 1}..."


def _failure_message(index: int, kind: AssetKind) -> str:
    return f"Scene {index + 1} {kind.value} unavailable"


class OrchestrationRun:
    """A single dispatch of every asset request for one script.

    Created by :meth:`AssetOrchestrator.start`. The run owns the script for
    its lifetime: asset results are written into it and its audio handles are
    released by :meth:`discard`.
    """

    def __init__(
        self,
        script: ExplainerScript,
        *,
        image_generator: ImageGenerator,
        speech_generator: SpeechGenerator,
        media_store: MediaStore,
        poll_interval_s: float,
        ready_timeout_s: float,
        on_progress: ProgressCallback | None = None,
        on_scene: SceneCallback | None = None,
    ) -> None:
        self._script = script
        self._image_generator = image_generator
        self._speech_generator = speech_generator
        self._media_store = media_store
        self._poll_interval_s = poll_interval_s
        self._ready_timeout_s = ready_timeout_s
        self._on_progress = on_progress
        self._on_scene = on_scene

        self._total = 2 * len(script.scenes)
        self._completed = 0
        self._succeeded = {AssetKind.IMAGE: 0, AssetKind.AUDIO: 0}
        self._failed = {AssetKind.IMAGE: 0, AssetKind.AUDIO: 0}
        self._failures: list[AssetFailure] = []
        self._progress = GenerationProgress(
            message="Generating scene assets...", percent=DISPATCH_PERCENT
        )

        self._ready = asyncio.Event()
        self._ready_reason: ReadyReason | None = None
        self._discarded = False
        self._asset_tasks: list[asyncio.Task[None]] = []
        self._readiness_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def progress(self) -> GenerationProgress:
        return self._progress

    @property
    def completed(self) -> int:
        """Number of asset requests that have settled (succeeded or failed)."""
        return self._completed

    @property
    def total(self) -> int:
        return self._total

    @property
    def is_ready(self) -> bool:
        return self._ready_reason is not None

    @property
    def ready_reason(self) -> ReadyReason | None:
        return self._ready_reason

    @property
    def is_discarded(self) -> bool:
        return self._discarded

    @property
    def is_complete(self) -> bool:
        return self._completed == self._total

    def snapshot(self) -> ExplainerScript:
        """Independent copy of the script in its current state."""
        return self._script.snapshot()

    def summary(self) -> RunSummary:
        """Counts and failures observed so far."""
        return RunSummary(
            total=self._total,
            images_succeeded=self._succeeded[AssetKind.IMAGE],
            images_failed=self._failed[AssetKind.IMAGE],
            audio_succeeded=self._succeeded[AssetKind.AUDIO],
            audio_failed=self._failed[AssetKind.AUDIO],
            ready_reason=self._ready_reason,
            failures=list(self._failures),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _dispatch(self) -> None:
        """Create every asset task and the readiness task. Requires a running loop."""
        self._emit_progress()
        for index, scene in enumerate(self._script.scenes):
            self._asset_tasks.append(
                asyncio.create_task(
                    self._generate_image(index, scene), name=f"scene-{scene.id}-image"
                )
            )
            self._asset_tasks.append(
                asyncio.create_task(
                    self._generate_speech(index, scene), name=f"scene-{scene.id}-audio"
                )
            )
        self._readiness_task = asyncio.create_task(self._decide_readiness(), name="readiness")
        logger.debug("Dispatched %d asset requests", self._total)

    async def wait_ready(self) -> ReadyReason:
        """Wait for the ready-to-play signal.

        Raises:
            RunDiscardedError: If the run is discarded before it becomes ready.
        """
        await self._ready.wait()
        if self._ready_reason is None:
            raise RunDiscardedError("Run was discarded before playback became ready")
        return self._ready_reason

    async def wait_complete(self) -> RunSummary:
        """Wait for every asset request to settle and summarize the run."""
        # Cancelling this waiter must not cancel in-flight requests
        if self._asset_tasks:
            await asyncio.wait(self._asset_tasks)
        return self.summary()

    def discard(self) -> int:
        """Abandon the run.

        Cancels the readiness timers and releases every audio handle already
        applied to the script. Requests still in flight run to completion but
        their results are released on arrival and never applied.

        Returns:
            Number of audio handles released.
        """
        if self._discarded:
            return 0
        self._discarded = True
        if self._readiness_task is not None and not self._readiness_task.done():
            self._readiness_task.cancel()
        released = self._media_store.release_all(self._script.audio_handles())
        # Wake waiters so wait_ready() can report the discard
        self._ready.set()
        logger.debug("Discarded run, released %d audio handles", released)
        return released

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    async def _poll_first_scene(self) -> None:
        while not self._script.first_scene_ready:
            await asyncio.sleep(self._poll_interval_s)

    async def _decide_readiness(self) -> None:
        poll = asyncio.create_task(self._poll_first_scene(), name="first-scene-poll")
        deadline = asyncio.create_task(asyncio.sleep(self._ready_timeout_s), name="ready-deadline")
        try:
            done, _ = await asyncio.wait({poll, deadline}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            poll.cancel()
            deadline.cancel()

        reason = ReadyReason.FIRST_SCENE if poll in done else ReadyReason.DEADLINE
        self._ready_reason = reason
        self._ready.set()
        logger.info(
            "Ready to play (%s) after %d/%d assets", reason.value, self._completed, self._total
        )

    # ------------------------------------------------------------------
    # Asset requests
    # ------------------------------------------------------------------

    async def _generate_image(self, index: int, scene: Scene) -> None:
        try:
            image = await self._image_generator.generate_image(scene.image_prompt)
        except Exception as e:
            self._settle_failure(index, scene.id, AssetKind.IMAGE, e)
            return
        self._settle_success(index, scene.id, AssetKind.IMAGE, image)

    async def _generate_speech(self, index: int, scene: Scene) -> None:
        try:
            payload = await self._speech_generator.generate_speech(scene.voiceover_text)
            # Malformed or empty PCM counts as a speech failure
            handle = create_wav_handle(payload, self._media_store)
        except Exception as e:
            self._settle_failure(index, scene.id, AssetKind.AUDIO, e)
            return
        self._settle_success(index, scene.id, AssetKind.AUDIO, handle)

    def _settle_success(
        self, index: int, scene_id: int, kind: AssetKind, value: str | MediaHandle
    ) -> None:
        if self._discarded:
            if isinstance(value, MediaHandle):
                self._media_store.release(value)
            logger.debug("Dropped late %s for scene %d of a discarded run", kind.value, scene_id)
            return

        scene = self._script.populate(scene_id, kind, value)
        self._succeeded[kind] += 1
        self._advance(_success_message(index, kind))
        if self._on_scene is not None:
            self._notify(self._on_scene, scene)

    def _settle_failure(self, index: int, scene_id: int, kind: AssetKind, error: Exception) -> None:
        if self._discarded:
            logger.debug("Ignored late %s failure for scene %d", kind.value, scene_id)
            return

        logger.warning("Scene %d %s generation failed: %s", scene_id, kind.value, error)
        self._failed[kind] += 1
        self._failures.append(AssetFailure(scene_id=scene_id, kind=kind, error=str(error)))
        self._advance(_failure_message(index, kind))

    def _advance(self, message: str) -> None:
        self._completed += 1
        self._progress = GenerationProgress(
            message=message, percent=_progress_percent(self._completed, self._total)
        )
        self._emit_progress()

    def _emit_progress(self) -> None:
        if self._on_progress is not None:
            self._notify(self._on_progress, self._progress)

    @staticmethod
    def _notify(callback: Callable[[object], None], value: object) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Orchestration observer raised")


class AssetOrchestrator:
    """Dispatches per-scene image and speech requests and tracks readiness.

    Args:
        image_generator: Produces image references from prompts.
        speech_generator: Produces base64 PCM from voice-over text.
        media_store: Registry that owns encoded WAV payloads.
        poll_interval_s: Interval between first-scene completion checks.
        ready_timeout_s: Ceiling after which playback is allowed regardless.

    Example:
        >>> orchestrator = AssetOrchestrator(backend, backend, MediaStore())
        >>> run = orchestrator.start(script, on_progress=print)
        >>> reason = await run.wait_ready()
        >>> summary = await run.wait_complete()
    """

    def __init__(
        self,
        image_generator: ImageGenerator,
        speech_generator: SpeechGenerator,
        media_store: MediaStore,
        *,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        ready_timeout_s: float = DEFAULT_READY_TIMEOUT_S,
    ) -> None:
        if poll_interval_s <= 0 or ready_timeout_s <= 0:
            raise ValueError("poll_interval_s and ready_timeout_s must be positive")
        self._image_generator = image_generator
        self._speech_generator = speech_generator
        self._media_store = media_store
        self._poll_interval_s = poll_interval_s
        self._ready_timeout_s = ready_timeout_s

    @property
    def media_store(self) -> MediaStore:
        return self._media_store

    def start(
        self,
        script: ExplainerScript,
        *,
        on_progress: ProgressCallback | None = None,
        on_scene: SceneCallback | None = None,
    ) -> OrchestrationRun:
        """Dispatch all 2N asset requests for ``script`` and return immediately.

        Must be called from within a running event loop.

        Args:
            script: Script whose scenes have empty asset handles.
            on_progress: Called with every progress update, starting at dispatch.
            on_scene: Called with each scene as one of its assets is applied.

        Returns:
            The running orchestration.

        Raises:
            ValueError: If the script has no scenes.
        """
        if not script.scenes:
            raise ValueError("Cannot orchestrate a script with no scenes")

        run = OrchestrationRun(
            script,
            image_generator=self._image_generator,
            speech_generator=self._speech_generator,
            media_store=self._media_store,
            poll_interval_s=self._poll_interval_s,
            ready_timeout_s=self._ready_timeout_s,
            on_progress=on_progress,
            on_scene=on_scene,
        )
        run._dispatch()
        return run
