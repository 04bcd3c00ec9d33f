"""Configuration models for Lumina."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Text log format (ignored when structured=True)",
    )
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")
    filename: str | None = Field(default=None, description="Log file path (stdout if None)")


class ModelsConfig(BaseModel):
    """Model selection for the OpenAI backend."""

    script_model: str = Field(default="gpt-4.1-mini", description="Model for script generation")
    image_model: str = Field(default="gpt-image-1", description="Primary image model")
    fallback_image_model: str | None = Field(
        default="dall-e-3", description="Image model tried when the primary fails (None disables)"
    )
    speech_model: str = Field(default="gpt-4o-mini-tts", description="Text-to-speech model")
    voice: str = Field(default="alloy", description="Text-to-speech voice")


class OrchestratorConfig(BaseModel):
    """Playback-readiness timing for asset orchestration."""

    model_config = ConfigDict(frozen=True)

    poll_interval_s: float = Field(
        default=0.5, gt=0.0, description="How often the first scene is checked for completion"
    )
    ready_timeout_s: float = Field(
        default=15.0, gt=0.0, description="Hard ceiling before playback starts regardless"
    )


class HistoryConfig(BaseModel):
    """Recent-topics persistence."""

    path: Path = Field(
        default_factory=lambda: Path.home() / ".lumina" / "lumina_history.json",
        description="JSON file holding the recent topics array",
    )
    max_entries: int = Field(default=8, ge=1, description="Maximum recent topics kept")


class HttpBackendConfig(BaseModel):
    """Remote generation service speaking the /api/generate-* endpoints."""

    base_url: str | None = Field(default=None, description="Service base URL")
    timeout_s: float = Field(default=120.0, gt=0.0, description="Per-request timeout")


class AppConfig(BaseModel):
    """Application configuration.

    Example:
        >>> config = AppConfig()
        >>> config.orchestrator.ready_timeout_s
        15.0
    """

    backend: Literal["openai", "http"] = Field(
        default="openai", description="Which generation backend to use"
    )
    openai_api_key: str | None = Field(
        default=None, description="OpenAI API key (falls back to OPENAI_API_KEY)"
    )
    output_dir: Path = Field(default=Path("artifacts"), description="Export directory")

    models: ModelsConfig = Field(default_factory=ModelsConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    http: HttpBackendConfig = Field(default_factory=HttpBackendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
