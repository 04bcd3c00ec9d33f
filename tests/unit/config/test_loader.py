"""Tests for configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError
import pytest

from lumina.core.api.generative.factory import create_backend
from lumina.core.api.generative.http_backend import HttpGenerativeBackend
from lumina.core.api.generative.openai_backend import OpenAIGenerativeBackend
from lumina.core.config.loader import detect_format, load_app_config, load_config
from lumina.core.config.models import AppConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LUMINA_API_BASE_URL", raising=False)


class TestDetectFormat:
    def test_known_suffixes(self) -> None:
        assert detect_format("a.json") == "json"
        assert detect_format("a.yaml") == "yaml"
        assert detect_format("a.YML") == "yaml"

    def test_unknown_suffix(self) -> None:
        with pytest.raises(ValueError):
            detect_format("a.toml")


class TestLoadConfig:
    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.json"
        path.write_text(json.dumps({"backend": "http"}))
        assert load_config(path) == {"backend": "http"}

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.yaml"
        path.write_text("backend: http\norchestrator:\n  ready_timeout_s: 5\n")
        assert load_config(path) == {"backend": "http", "orchestrator": {"ready_timeout_s": 5}}

    def test_empty_yaml_is_empty_dict(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.json"
        path.write_text("{nope")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")


class TestLoadAppConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_app_config(tmp_path / "absent.json")

        assert config.backend == "openai"
        assert config.orchestrator.poll_interval_s == 0.5
        assert config.orchestrator.ready_timeout_s == 15.0
        assert config.history.max_entries == 8
        assert config.history.path.name == "lumina_history.json"
        assert config.models.image_model == "gpt-image-1"
        assert config.models.fallback_image_model == "dall-e-3"

    def test_values_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.yaml"
        path.write_text(
            "backend: http\n"
            "http:\n  base_url: https://lumina.example.test\n"
            "history:\n  path: " + str(tmp_path / "h.json") + "\n  max_entries: 3\n"
        )
        config = load_app_config(path)

        assert config.backend == "http"
        assert config.http.base_url == "https://lumina.example.test"
        assert config.history.path == tmp_path / "h.json"
        assert config.history.max_entries == 3

    def test_env_fills_unset_values(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("LUMINA_API_BASE_URL", "https://env.example.test")

        config = load_app_config(tmp_path / "absent.json")

        assert config.openai_api_key == "sk-env"
        assert config.http.base_url == "https://env.example.test"

    def test_file_values_win_over_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        path = tmp_path / "lumina.json"
        path.write_text(json.dumps({"openai_api_key": "sk-file"}))

        assert load_app_config(path).openai_api_key == "sk-file"

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "lumina.json"
        path.write_text(json.dumps({"orchestrator": {"ready_timeout_s": 0}}))
        with pytest.raises(ValidationError):
            load_app_config(path)


class TestCreateBackend:
    def test_openai(self) -> None:
        backend = create_backend(AppConfig(openai_api_key="sk-test"))
        assert isinstance(backend, OpenAIGenerativeBackend)

    def test_http(self) -> None:
        config = AppConfig.model_validate(
            {"backend": "http", "http": {"base_url": "https://lumina.example.test"}}
        )
        assert isinstance(create_backend(config), HttpGenerativeBackend)

    def test_http_requires_base_url(self) -> None:
        with pytest.raises(ValueError, match="base_url"):
            create_backend(AppConfig(backend="http"))
