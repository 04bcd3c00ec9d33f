"""Tests for ExplainerSession."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from lumina.core.explainer.history import RecentTopics
from lumina.core.explainer.models import AppState
from lumina.core.media.store import MediaStore
from lumina.core.pipeline.session import (
    ExplainerSession,
    SessionEvent,
    SessionEventType,
)


def _session(backend, store: MediaStore, **kwargs) -> ExplainerSession:
    kwargs.setdefault("poll_interval_s", 0.01)
    kwargs.setdefault("ready_timeout_s", 5.0)
    return ExplainerSession(backend, store, **kwargs)


class TestStartGeneration:
    @pytest.mark.asyncio
    async def test_reaches_playing(
        self, make_backend: Callable, media_store: MediaStore, history_path: Path
    ) -> None:
        backend = make_backend()
        session = _session(backend, media_store, history=RecentTopics(history_path))

        state = await session.start_generation("  Black Holes ")

        assert state is AppState.PLAYING
        assert session.state is AppState.PLAYING
        assert session.topic == "Black Holes"
        assert backend.script_calls == ["Black Holes"]
        assert session.recent_topics() == ["Black Holes"]
        summary = await session.wait_for_assets()
        assert summary.succeeded == 8

    @pytest.mark.asyncio
    async def test_state_sequence(self, make_backend: Callable, media_store: MediaStore) -> None:
        session = _session(make_backend(), media_store)
        states: list[AppState] = []
        session.subscribe(
            lambda e: states.append(e.state) if e.type is SessionEventType.STATE_CHANGED else None
        )

        await session.start_generation("Tides")

        assert states == [AppState.GENERATING_SCRIPT, AppState.LOADING_ASSETS, AppState.PLAYING]

    @pytest.mark.asyncio
    async def test_script_progress_precedes_asset_progress(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        session = _session(make_backend(), media_store)
        events: list[SessionEvent] = []
        session.subscribe(events.append)

        await session.start_generation("Tides")
        await session.wait_for_assets()

        assert events[0].progress.message == "Consulting the AI Architect..."
        assert events[0].progress.percent == 10
        percents = [e.progress.percent for e in events]
        assert percents == sorted(percents)
        assert session.progress.percent == 100

    @pytest.mark.asyncio
    async def test_blank_topic_rejected(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        backend = make_backend()
        session = _session(backend, media_store)

        with pytest.raises(ValueError):
            await session.start_generation("   ")
        assert backend.script_calls == []
        assert session.state is AppState.IDLE

    @pytest.mark.asyncio
    async def test_script_failure_is_fatal_and_dispatches_nothing(
        self, failing_script_backend, media_store: MediaStore
    ) -> None:
        session = _session(failing_script_backend, media_store)

        state = await session.start_generation("Black Holes")

        assert state is AppState.ERROR
        assert "500" in (session.error or "")
        assert failing_script_backend.image_calls == []
        assert failing_script_backend.speech_calls == []
        assert session.run is None
        with pytest.raises(RuntimeError):
            await session.wait_for_assets()

    @pytest.mark.asyncio
    async def test_history_write_failure_is_not_fatal(
        self, make_backend: Callable, media_store: MediaStore, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        session = _session(
            make_backend(), media_store, history=RecentTopics(blocker / "history.json")
        )

        assert await session.start_generation("Tides") is AppState.PLAYING

    @pytest.mark.asyncio
    async def test_scene_events_carry_snapshots(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        session = _session(make_backend(), media_store)
        scene_events: list[SessionEvent] = []
        session.subscribe(
            lambda e: scene_events.append(e) if e.type is SessionEventType.SCENE_UPDATED else None
        )

        await session.start_generation("Tides")
        await session.wait_for_assets()

        assert len(scene_events) == 8
        first = scene_events[0]
        assert first.scene is not None
        assert first.script is not None
        # Earlier snapshots do not change as later assets arrive
        populated = sum(s.image is not None for s in first.script.scenes)
        populated += sum(s.audio is not None for s in first.script.scenes)
        assert populated == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, make_backend: Callable, media_store: MediaStore) -> None:
        session = _session(make_backend(), media_store)
        events: list[SessionEvent] = []
        unsubscribe = session.subscribe(events.append)
        unsubscribe()

        await session.start_generation("Tides")
        assert events == []


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_releases_audio_and_returns_to_idle(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        session = _session(make_backend(), media_store)
        await session.start_generation("Tides")
        await session.wait_for_assets()
        assert media_store.live_count == 4

        session.reset()

        assert session.state is AppState.IDLE
        assert session.script is None
        assert session.topic is None
        assert session.progress.percent == 0
        assert media_store.live_count == 0

    @pytest.mark.asyncio
    async def test_reset_recovers_from_error(
        self, failing_script_backend, media_store: MediaStore
    ) -> None:
        session = _session(failing_script_backend, media_store)
        await session.start_generation("Tides")
        session.reset()

        assert session.state is AppState.IDLE
        assert session.error is None

    @pytest.mark.asyncio
    async def test_reset_during_script_request_drops_script(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        backend = make_backend(script_delay_s=0.05)
        session = _session(backend, media_store)

        task = asyncio.create_task(session.start_generation("Tides"))
        await asyncio.sleep(0.01)
        session.reset()

        assert await task is AppState.IDLE
        assert backend.image_calls == []
        assert session.run is None

    @pytest.mark.asyncio
    async def test_new_topic_discards_previous_run(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        backend = make_backend(delays={"Prompt 4": 0.1, "Voiceover 4": 0.1})
        session = _session(backend, media_store)

        await session.start_generation("Tides")
        first_run = session.run
        assert first_run is not None

        await session.start_generation("Volcanoes")
        assert first_run.is_discarded
        assert session.run is not first_run

        await first_run.wait_complete()
        await session.wait_for_assets()
        # Only the second run's four narrations remain live
        assert media_store.live_count == 4
        assert session.state is AppState.PLAYING

    @pytest.mark.asyncio
    async def test_reset_while_loading_assets_never_plays(
        self, make_backend: Callable, media_store: MediaStore
    ) -> None:
        backend = make_backend(delays={"Prompt 1": 0.2, "Voiceover 1": 0.2})
        session = _session(backend, media_store)
        states: list[AppState] = []
        session.subscribe(
            lambda event: states.append(event.state)
            if event.type is SessionEventType.STATE_CHANGED
            else None
        )

        task = asyncio.create_task(session.start_generation("Tides"))
        await asyncio.sleep(0.05)
        assert session.state is AppState.LOADING_ASSETS
        run = session.run
        assert run is not None

        session.reset()

        assert await task is AppState.IDLE
        await run.wait_complete()
        assert AppState.PLAYING not in states
        assert states[-1] is AppState.IDLE
        assert run.is_discarded
        assert media_store.live_count == 0
