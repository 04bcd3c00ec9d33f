"""Backend factory for generation backend dispatch."""

from __future__ import annotations

from lumina.core.api.generative.http_backend import HttpGenerativeBackend
from lumina.core.api.generative.openai_backend import OpenAIGenerativeBackend
from lumina.core.api.generative.protocols import GenerativeBackend
from lumina.core.config.models import AppConfig


def create_backend(app_config: AppConfig) -> GenerativeBackend:
    """Create the configured generation backend.

    Raises:
        ValueError: If the backend is unknown or missing required settings.
    """
    if app_config.backend == "openai":
        return OpenAIGenerativeBackend(
            api_key=app_config.openai_api_key,
            models=app_config.models,
        )

    if app_config.backend == "http":
        if not app_config.http.base_url:
            raise ValueError("http backend requires http.base_url or LUMINA_API_BASE_URL")
        return HttpGenerativeBackend.from_base_url(
            app_config.http.base_url,
            timeout_s=app_config.http.timeout_s,
        )

    raise ValueError(f"Unknown generation backend configured: {app_config.backend}")
