"""HTTP client for the remote generation service."""

from lumina.core.api.http.client import REQUEST_ID_HEADER, AsyncApiClient
from lumina.core.api.http.config import HttpClientConfig
from lumina.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    error_type_for_status,
)

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "REQUEST_ID_HEADER",
    "ApiError",
    "AuthError",
    "ClientError",
    "DecodeError",
    "NetworkError",
    "RateLimitError",
    "ServerError",
    "TimeoutError",
    "error_type_for_status",
]
