"""Error taxonomy for calls to the remote generation service.

Every failure leaving :class:`AsyncApiClient` is an :class:`ApiError`
subclass chosen by what went wrong: transport, timeout, status category or an
unusable body.
"""

from __future__ import annotations

import httpx

from lumina.core.api.http.utils import get_request_id, safe_snippet


class ApiError(Exception):
    """Base error for a failed service call.

    Attributes:
        message: Human-readable summary.
        method: HTTP method of the failed request.
        url: Request URL.
        status_code: Response status, when a response was received.
        request_id: Tracing id sent with, or echoed by, the service.
        body_snippet: Truncated response body, when one was received.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int | None = None,
        request_id: str | None = None,
        body_snippet: str | None = None,
    ) -> None:
        self.message = message
        self.method = method
        self.url = url
        self.status_code = status_code
        self.request_id = request_id
        self.body_snippet = body_snippet
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.message} ({self.method} {self.url}"
        if self.status_code is not None:
            text += f", status {self.status_code}"
        if self.request_id:
            text += f", request {self.request_id}"
        return text + ")"

    @classmethod
    def from_response(
        cls,
        message: str,
        response: httpx.Response,
        *,
        request_id: str | None = None,
        body_limit: int = 2048,
    ) -> ApiError:
        """Build an error carrying the status, tracing id and body of ``response``."""
        return cls(
            message,
            method=response.request.method,
            url=str(response.request.url),
            status_code=response.status_code,
            request_id=get_request_id(response.headers) or request_id,
            body_snippet=safe_snippet(response.content, body_limit),
        )


class NetworkError(ApiError):
    """Connection could not be made or was dropped."""


class TimeoutError(ApiError):
    """No response within the configured timeout."""


class DecodeError(ApiError):
    """Response body is not the JSON shape the endpoint promises."""


class AuthError(ApiError):
    """401/403 from the service."""


class RateLimitError(ApiError):
    """429 from the service."""


class ClientError(ApiError):
    """Any other 4xx."""


class ServerError(ApiError):
    """5xx, or a status outside the standard error ranges."""


def error_type_for_status(status_code: int) -> type[ApiError]:
    """Pick the error class for an error status."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    return ServerError
