"""Command-line interface for Lumina."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import re
import sys
from typing import Any

from rich.console import Console

from lumina.core.api.generative import GenerativeBackend, create_backend
from lumina.core.audio import WavEncodingError, encode_wav_from_base64, parse_wav_header
from lumina.core.config.loader import configure_logging, load_app_config
from lumina.core.config.models import AppConfig
from lumina.core.explainer import AppState, ExplainerScript, RecentTopics
from lumina.core.media import MediaStore, decode_data_uri
from lumina.core.pipeline import ExplainerSession, SessionEvent, SessionEventType
from lumina.core.utils.json import write_json

console = Console()
logger = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def slugify(topic: str) -> str:
    """Filesystem-safe directory name for a topic."""
    slug = re.sub(r"[^a-z0-9]+", "_", topic.lower()).strip("_")
    return slug or "explainer"


def export_script(script: ExplainerScript, store: MediaStore, out_dir: Path) -> Path:
    """Write a finished presentation to disk.

    Layout: ``script.json`` plus ``scene_<id>.<ext>`` images and
    ``scene_<id>.wav`` narration for every populated asset. Image references
    that are URLs rather than data URIs are recorded in script.json only.

    Args:
        script: Script with populated assets.
        store: Store owning the audio handles.
        out_dir: Destination directory (created if missing).

    Returns:
        Path of the written script.json.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    scenes: list[dict[str, Any]] = []

    for scene in script.scenes:
        entry = scene.model_dump(by_alias=True, exclude={"image", "audio"})

        if scene.image is not None:
            if scene.image.startswith("data:"):
                media_type, data = decode_data_uri(scene.image)
                extension = _IMAGE_EXTENSIONS.get(media_type, ".img")
                image_path = out_dir / f"scene_{scene.id}{extension}"
                image_path.write_bytes(data)
                entry["imageFile"] = image_path.name
            else:
                entry["imageUrl"] = scene.image

        if scene.audio is not None:
            audio_path = out_dir / f"scene_{scene.id}.wav"
            audio_path.write_bytes(store.read(scene.audio))
            entry["audioFile"] = audio_path.name

        scenes.append(entry)

    script_path = out_dir / "script.json"
    write_json(script_path, {"title": script.title, "summary": script.summary, "scenes": scenes})
    return script_path


def _print_event(event: SessionEvent) -> None:
    if event.type is SessionEventType.PROGRESS:
        console.print(f"[cyan]{event.progress.percent:5.1f}%[/cyan] {event.progress.message}")
    elif event.type is SessionEventType.STATE_CHANGED and event.state is AppState.GENERATING_SCRIPT:
        console.print(f"[cyan]{event.progress.percent:5.1f}%[/cyan] {event.progress.message}")
    elif event.type is SessionEventType.STATE_CHANGED and event.state is AppState.PLAYING:
        console.print("[green]✅ Ready to play[/green]")


async def generate_async(
    topic: str,
    output_dir: Path,
    app_config: AppConfig,
    *,
    backend: GenerativeBackend | None = None,
) -> int:
    """Generate a presentation for ``topic`` and export it.

    Args:
        topic: Subject of the explainer.
        output_dir: Parent directory for the export.
        app_config: Loaded application config.
        backend: Generation backend (built from config if None).

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if backend is None:
        try:
            backend = create_backend(app_config)
        except ValueError as e:
            console.print(f"[red]ERROR: {e}[/red]")
            return 1

    store = MediaStore()
    session = ExplainerSession(
        backend,
        store,
        history=RecentTopics(app_config.history.path, max_entries=app_config.history.max_entries),
        poll_interval_s=app_config.orchestrator.poll_interval_s,
        ready_timeout_s=app_config.orchestrator.ready_timeout_s,
    )
    session.subscribe(_print_event)

    try:
        state = await session.start_generation(topic)
        if state is not AppState.PLAYING:
            console.print(f"[red]ERROR: {session.error or 'Generation did not complete'}[/red]")
            return 1

        summary = await session.wait_for_assets()
        script = session.script
        if script is None:
            console.print("[red]ERROR: Session was reset before export[/red]")
            return 1

        artifact_dir = output_dir / slugify(topic)
        script_path = export_script(script, store, artifact_dir)

        console.print(f"\n[bold]{script.title}[/bold]")
        console.print(script.summary)
        console.print(f"Assets: {summary.succeeded}/{summary.total} generated")
        for failure in summary.failures:
            console.print(
                f"[yellow]   - scene {failure.scene_id} {failure.kind.value}: "
                f"{failure.error}[/yellow]"
            )
        console.print(f"\n[green]📁 Saved to:[/green] {script_path.parent}")
        return 0
    finally:
        session.reset()
        await backend.aclose()


def recent_topic(app_config: AppConfig, position: int) -> str:
    """Topic at 1-based ``position`` in the recent-topics list.

    Raises:
        ValueError: No topic at that position.
    """
    topics = RecentTopics(
        app_config.history.path, max_entries=app_config.history.max_entries
    ).load()
    if not 1 <= position <= len(topics):
        raise ValueError(f"No recent topic #{position} ({len(topics)} stored)")
    return topics[position - 1]


def run_generate(args: argparse.Namespace, app_config: AppConfig) -> int:
    """Generate and export an explainer."""
    output_dir = Path(args.out).resolve() if args.out else app_config.output_dir.resolve()
    try:
        topic = args.topic if args.recent is None else recent_topic(app_config, args.recent)
        return asyncio.run(generate_async(topic, output_dir, app_config))
    except ValueError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1


def run_history(args: argparse.Namespace, app_config: AppConfig) -> int:
    """List or clear recent topics."""
    history = RecentTopics(app_config.history.path, max_entries=app_config.history.max_entries)
    if args.clear:
        history.clear()
        console.print("[green]History cleared[/green]")
        return 0

    topics = history.load()
    if not topics:
        console.print("No recent topics")
        return 0
    for index, topic in enumerate(topics, start=1):
        console.print(f"{index}. {topic}")
    return 0


def run_encode_wav(args: argparse.Namespace, app_config: AppConfig) -> int:
    """Wrap a base64 PCM payload file in a WAV container."""
    input_path = Path(args.input)
    if not input_path.exists():
        console.print(f"[red]ERROR: Input file not found: {input_path}[/red]")
        return 1

    try:
        wav = encode_wav_from_base64(input_path.read_text(encoding="ascii", errors="replace"))
    except WavEncodingError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(wav)

    header = parse_wav_header(wav)
    console.print(
        f"[green]✅ Wrote {output_path}[/green] "
        f"({header.data_length} bytes PCM, {header.sample_rate} Hz, "
        f"{header.channels} ch, {header.bits_per_sample}-bit)"
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="lumina",
        description="Lumina - narrated, illustrated explainers from a topic",
    )
    p.add_argument(
        "--config",
        default="lumina.json",
        help="Path to app config JSON/YAML (default: lumina.json)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate and export an explainer")
    source = gen.add_mutually_exclusive_group(required=True)
    source.add_argument("topic", nargs="?", help="Topic to explain")
    source.add_argument(
        "--recent",
        type=int,
        metavar="N",
        help="Re-run topic N from `lumina history` (1 = most recent)",
    )
    gen.add_argument("--out", default=None, help="Output directory (default: config output_dir)")

    hist = sub.add_parser("history", help="Show recent topics")
    hist.add_argument("--clear", action="store_true", help="Remove all recent topics")

    enc = sub.add_parser("encode-wav", help="Wrap base64 24 kHz mono PCM in a WAV file")
    enc.add_argument("input", help="File containing the base64 payload")
    enc.add_argument("output", help="WAV file to write")

    return p


_COMMANDS = {
    "generate": run_generate,
    "history": run_history,
    "encode-wav": run_encode_wav,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)

    try:
        app_config = load_app_config(args.config)
    except Exception as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        sys.exit(1)

    configure_logging(app_config)
    sys.exit(_COMMANDS[args.cmd](args, app_config))
