"""Generation-and-playback session state machine.

IDLE -> GENERATING_SCRIPT -> LOADING_ASSETS -> PLAYING, or ERROR when script
generation fails. ``reset()`` returns to IDLE from any state and discards the
current run. Results belonging to a replaced or reset run are never applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from lumina.core.api.generative.protocols import GenerativeBackend
from lumina.core.explainer.history import RecentTopics
from lumina.core.explainer.models import (
    AppState,
    ExplainerScript,
    GenerationProgress,
    Scene,
)
from lumina.core.media.store import MediaStore
from lumina.core.pipeline.orchestrator import (
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_READY_TIMEOUT_S,
    AssetOrchestrator,
    OrchestrationRun,
    RunDiscardedError,
    RunSummary,
)

logger = logging.getLogger(__name__)

SCRIPT_PROGRESS = GenerationProgress(message="Consulting the AI Architect...", percent=10)


class SessionEventType(str, Enum):
    STATE_CHANGED = "state_changed"
    PROGRESS = "progress"
    SCENE_UPDATED = "scene_updated"


class SessionEvent(BaseModel):
    """Notification delivered to session listeners.

    ``script`` is an independent snapshot; listeners may keep it.
    """

    model_config = ConfigDict(frozen=True)

    type: SessionEventType
    state: AppState
    progress: GenerationProgress
    script: ExplainerScript | None = None
    scene: Scene | None = None
    error: str | None = None


SessionListener = Callable[[SessionEvent], None]


class ExplainerSession:
    """Drives one topic at a time from script request to playback readiness.

    Args:
        backend: Script, image and speech collaborator.
        media_store: Registry owning encoded audio.
        history: Recent-topics storage (optional).
        poll_interval_s: First-scene poll interval.
        ready_timeout_s: Playback-readiness ceiling.

    Example:
        >>> session = ExplainerSession(backend, MediaStore())
        >>> state = await session.start_generation("Black Holes")
        >>> state
        <AppState.PLAYING: 'PLAYING'>
        >>> summary = await session.wait_for_assets()
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        media_store: MediaStore,
        *,
        history: RecentTopics | None = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        ready_timeout_s: float = DEFAULT_READY_TIMEOUT_S,
    ) -> None:
        self._backend = backend
        self._media_store = media_store
        self._history = history
        self._orchestrator = AssetOrchestrator(
            backend,
            backend,
            media_store,
            poll_interval_s=poll_interval_s,
            ready_timeout_s=ready_timeout_s,
        )

        self._state = AppState.IDLE
        self._progress = GenerationProgress()
        self._topic: str | None = None
        self._error: str | None = None
        self._script: ExplainerScript | None = None
        self._run: OrchestrationRun | None = None
        # Bumped on every start/reset so stale continuations can tell they lost
        self._generation = 0
        self._listeners: list[SessionListener] = []

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def progress(self) -> GenerationProgress:
        return self._progress

    @property
    def topic(self) -> str | None:
        return self._topic

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def script(self) -> ExplainerScript | None:
        """Snapshot of the current script, if any."""
        return self._script.snapshot() if self._script is not None else None

    @property
    def run(self) -> OrchestrationRun | None:
        return self._run

    def recent_topics(self) -> list[str]:
        return self._history.load() if self._history is not None else []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start_generation(self, topic: str) -> AppState:
        """Generate a presentation for ``topic`` and wait until it may play.

        Any previous run is discarded first. Script failure is fatal: the
        session moves to ERROR and no asset request is sent.

        Args:
            topic: Subject of the explainer.

        Returns:
            The resulting state: PLAYING, ERROR, or whatever a concurrent
            reset/restart left behind.

        Raises:
            ValueError: If ``topic`` is blank.
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic must not be blank")

        self._discard_current()
        self._generation += 1
        generation = self._generation

        self._topic = topic
        self._error = None
        if self._history is not None:
            self._history.add(topic)
        self._set_state(AppState.GENERATING_SCRIPT, SCRIPT_PROGRESS)

        try:
            script = await self._backend.generate_script(topic)
        except Exception as e:
            if generation != self._generation:
                logger.debug("Ignoring script failure for superseded topic %r", topic)
                return self._state
            logger.error("Script generation failed for %r", topic, exc_info=True)
            self._error = str(e) or "Script generation failed"
            self._set_state(AppState.ERROR)
            return self._state

        if generation != self._generation:
            logger.debug("Dropping script for superseded topic %r", topic)
            return self._state

        self._script = script
        self._set_state(AppState.LOADING_ASSETS)
        run = self._orchestrator.start(
            script,
            on_progress=lambda progress: self._handle_progress(generation, progress),
            on_scene=lambda scene: self._handle_scene(generation, scene),
        )
        self._run = run

        try:
            await run.wait_ready()
        except RunDiscardedError:
            return self._state

        if generation == self._generation:
            self._set_state(AppState.PLAYING)
        return self._state

    async def wait_for_assets(self) -> RunSummary:
        """Wait for the current run's remaining asset requests to settle.

        Raises:
            RuntimeError: If no run has been started.
        """
        if self._run is None:
            raise RuntimeError("No asset generation in progress")
        return await self._run.wait_complete()

    def reset(self) -> None:
        """Return to IDLE, discarding the current script and its audio."""
        self._discard_current()
        self._generation += 1
        self._topic = None
        self._error = None
        self._set_state(AppState.IDLE, GenerationProgress())

    def _discard_current(self) -> None:
        if self._run is not None:
            self._run.discard()
        elif self._script is not None:
            self._media_store.release_all(self._script.audio_handles())
        self._run = None
        self._script = None

    def _handle_progress(self, generation: int, progress: GenerationProgress) -> None:
        if generation != self._generation:
            return
        self._progress = progress
        self._emit(SessionEventType.PROGRESS)

    def _handle_scene(self, generation: int, scene: Scene) -> None:
        if generation != self._generation:
            return
        self._emit(SessionEventType.SCENE_UPDATED, scene=scene)

    def _set_state(self, state: AppState, progress: GenerationProgress | None = None) -> None:
        self._state = state
        if progress is not None:
            self._progress = progress
        logger.debug("Session state -> %s", state.value)
        self._emit(SessionEventType.STATE_CHANGED)

    def _emit(self, event_type: SessionEventType, *, scene: Scene | None = None) -> None:
        if not self._listeners:
            return
        event = SessionEvent(
            type=event_type,
            state=self._state,
            progress=self._progress,
            script=self.script,
            scene=scene,
            error=self._error,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener raised")
