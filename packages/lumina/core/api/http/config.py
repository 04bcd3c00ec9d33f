"""Connection settings for the remote generation service."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class HttpClientConfig(BaseModel):
    """Settings for :class:`AsyncApiClient`.

    Image and speech generation routinely take tens of seconds, hence the
    generous read timeout.

    Example:
        >>> config = HttpClientConfig(base_url="https://lumina.example.com", timeout_s=60)
        >>> config.httpx_timeout().read
        60.0
    """

    model_config = ConfigDict(frozen=True)

    base_url: str
    timeout_s: float = Field(default=120.0, gt=0.0)
    connect_timeout_s: float = Field(default=10.0, gt=0.0)
    max_connections: int = Field(default=16, ge=1)
    headers: dict[str, str] = Field(default_factory=dict)
    user_agent: str = "lumina/0.1"
    redact_headers: tuple[str, ...] = ("authorization", "cookie", "x-api-key")
    max_error_body_bytes: int = Field(default=2048, ge=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    def httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s)

    def httpx_limits(self) -> httpx.Limits:
        return httpx.Limits(max_connections=self.max_connections)
