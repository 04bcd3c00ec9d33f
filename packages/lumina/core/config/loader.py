"""Read ``lumina.json`` / ``lumina.yaml`` into :class:`AppConfig`."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from lumina.core.config.models import AppConfig
from lumina.core.utils.json import read_json
from lumina.core.utils.logging import configure_logging as _configure_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("lumina.json")

_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def detect_format(file_path: Path | str) -> str:
    """Return ``"json"`` or ``"yaml"`` based on the file suffix.

    Raises:
        ValueError: Unknown suffix.
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _FORMATS[suffix]
    except KeyError:
        raise ValueError(f"Unsupported config format: {suffix or '(none)'}") from None


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a config file into a plain dict.

    An empty YAML file reads as ``{}``.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        ValueError: Unsupported suffix, unparseable content, or a top level
            that is not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    if detect_format(path) == "json":
        try:
            content = read_json(path)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        content = _read_yaml(path)

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(content).__name__}")
    return content


def _apply_env(config: AppConfig) -> AppConfig:
    """Fill an unset API key and service URL from the environment."""
    updates: dict[str, Any] = {}

    api_key = os.getenv("OPENAI_API_KEY")
    if config.openai_api_key is None and api_key:
        updates["openai_api_key"] = api_key

    base_url = os.getenv("LUMINA_API_BASE_URL")
    if config.http.base_url is None and base_url:
        updates["http"] = config.http.model_copy(update={"base_url": base_url})

    if updates:
        logger.debug("Config values taken from environment: %s", ", ".join(sorted(updates)))
        config = config.model_copy(update=updates)
    return config


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load, validate and complete the application config.

    A missing file is not an error: defaults apply. ``OPENAI_API_KEY`` and
    ``LUMINA_API_BASE_URL`` fill the matching settings when the file leaves
    them unset.

    Raises:
        ValueError: Unreadable file.
        ValidationError: Values out of range or of the wrong type.
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if path.exists():
        config = AppConfig.model_validate(load_config(path))
    else:
        logger.debug("No config at %s, using defaults", path)
        config = AppConfig()
    return _apply_env(config)


def configure_logging(config: AppConfig) -> None:
    """Apply the ``logging`` section of ``config``."""
    _configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )
