"""Async JSON client for the remote generation service.

A thin layer over ``httpx.AsyncClient`` that tags each call with a request id,
logs it with secrets redacted and turns every failure into an
:class:`~lumina.core.api.http.errors.ApiError`. Calls are sent once; retrying
is left to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Any, TypeVar
import uuid

import httpx
from pydantic import BaseModel, ValidationError

from lumina.core.api.http.config import HttpClientConfig
from lumina.core.api.http.errors import (
    DecodeError,
    NetworkError,
    TimeoutError,
    error_type_for_status,
)
from lumina.core.api.http.utils import redact_headers

logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)

REQUEST_ID_HEADER = "X-Request-Id"


class AsyncApiClient:
    """JSON-over-HTTP client bound to one service base URL.

    Args:
        config: Connection settings.
        transport: Custom transport (``httpx.MockTransport`` in tests).

    Example:
        >>> config = HttpClientConfig(base_url="https://lumina.example.com")
        >>> async with AsyncApiClient(config) as client:
        ...     data = await client.post_json("/api/generate-script", {"topic": "Tides"})
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            timeout=config.httpx_timeout(),
            limits=config.httpx_limits(),
            transport=transport,
        )

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def send(self, method: str, path: str, *, body: Any = None) -> httpx.Response:
        """Send one request and return the response if its status is below 400.

        Raises:
            TimeoutError: The service did not answer in time.
            NetworkError: The request could not be delivered.
            ApiError: A status-specific subclass for any 4xx/5xx response.
        """
        method = method.upper()
        request_id = uuid.uuid4().hex
        headers = {REQUEST_ID_HEADER: request_id}
        url = f"{self.config.base_url}/{path.lstrip('/')}"

        logger.debug(
            "%s %s [%s] headers=%s",
            method,
            url,
            request_id,
            redact_headers({**self._http.headers, **headers}, self.config.redact_headers),
        )
        started = time.perf_counter()

        try:
            response = await self._http.request(method, url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise TimeoutError(
                "Request timed out", method=method, url=url, request_id=request_id
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(
                f"Request failed: {e}", method=method, url=url, request_id=request_id
            ) from e

        logger.debug(
            "%s %s [%s] -> %d in %.0f ms",
            method,
            url,
            request_id,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )

        if response.status_code >= 400:
            raise error_type_for_status(response.status_code).from_response(
                "Service returned an error",
                response,
                request_id=request_id,
                body_limit=self.config.max_error_body_bytes,
            )
        return response

    def decode(self, response: httpx.Response) -> Any:
        """Decode a JSON body.

        Raises:
            DecodeError: The body is missing, not labelled JSON, or not parseable.
        """
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            raise DecodeError.from_response(
                f"Expected JSON, got {content_type or 'no content type'}",
                response,
                body_limit=self.config.max_error_body_bytes,
            )
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError.from_response(
                f"Malformed JSON: {e}", response, body_limit=self.config.max_error_body_bytes
            ) from e

    async def post_json(self, path: str, body: Any) -> Any:
        """POST ``body`` as JSON and return the decoded JSON reply.

        Raises:
            ApiError: On transport failure, error status or undecodable reply.
        """
        return self.decode(await self.send("POST", path, body=body))

    async def post_model(self, path: str, body: Any, model: type[TModel]) -> TModel:
        """POST ``body`` and validate the reply against ``model``.

        Raises:
            ApiError: As :meth:`post_json`.
            DecodeError: The reply does not match ``model``.
        """
        response = await self.send("POST", path, body=body)
        data = self.decode(response)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError.from_response(
                f"Reply does not match {model.__name__}: {e.error_count()} error(s)",
                response,
                body_limit=self.config.max_error_body_bytes,
            ) from e
