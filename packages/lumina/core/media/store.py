"""In-process registry of playable media resources.

A MediaStore mints opaque, addressable handles for byte payloads (encoded
speech, decoded images) and frees the bytes again when the owning scene or
script is discarded. Handles stay valid until released; reading a released
handle is an error rather than silently returning stale data.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MEDIA_URI_SCHEME = "media"


class MediaReleasedError(KeyError):
    """Raised when reading a handle that was released or never registered."""


class MediaHandle(BaseModel):
    """Opaque reference to bytes held by a MediaStore.

    Attributes:
        handle_id: Unique identifier within the owning store.
        media_type: MIME type of the payload (e.g. ``audio/wav``).
        size_bytes: Payload length in bytes.
    """

    model_config = ConfigDict(frozen=True)

    handle_id: str = Field(min_length=1)
    media_type: str = Field(min_length=1)
    size_bytes: int = Field(ge=0)

    @property
    def uri(self) -> str:
        """Addressable URI for this handle (``media://<handle_id>``)."""
        return f"{MEDIA_URI_SCHEME}://{self.handle_id}"


class MediaStore:
    """Registry that owns media payloads behind MediaHandles.

    Example:
        >>> store = MediaStore()
        >>> handle = store.create(wav_bytes, "audio/wav")
        >>> store.read(handle)[:4]
        b'RIFF'
        >>> store.release(handle)
        >>> store.live_count
        0
    """

    def __init__(self) -> None:
        self._payloads: dict[str, bytes] = {}

    @property
    def live_count(self) -> int:
        """Number of handles that have not been released."""
        return len(self._payloads)

    def create(self, data: bytes, media_type: str) -> MediaHandle:
        """Register a payload and return a new handle for it."""
        handle = MediaHandle(
            handle_id=uuid4().hex,
            media_type=media_type,
            size_bytes=len(data),
        )
        self._payloads[handle.handle_id] = bytes(data)
        return handle

    def is_live(self, handle: MediaHandle) -> bool:
        """Whether the handle still refers to stored bytes."""
        return handle.handle_id in self._payloads

    def read(self, handle: MediaHandle) -> bytes:
        """Return the payload behind a live handle.

        Raises:
            MediaReleasedError: If the handle was released.
        """
        try:
            return self._payloads[handle.handle_id]
        except KeyError as e:
            raise MediaReleasedError(f"Media handle {handle.uri} is not live") from e

    def to_data_uri(self, handle: MediaHandle) -> str:
        """Render a live handle as a ``data:`` URI."""
        encoded = base64.b64encode(self.read(handle)).decode("ascii")
        return f"data:{handle.media_type};base64,{encoded}"

    def release(self, handle: MediaHandle) -> None:
        """Free the bytes behind a handle. Releasing twice is a no-op."""
        if self._payloads.pop(handle.handle_id, None) is not None:
            logger.debug("Released %s (%d bytes)", handle.uri, handle.size_bytes)

    def release_all(self, handles: Iterable[MediaHandle]) -> int:
        """Release a batch of handles.

        Returns:
            Number of handles that were live before the call.
        """
        released = 0
        for handle in handles:
            if self.is_live(handle):
                self.release(handle)
                released += 1
        return released


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 ``data:`` URI into its media type and payload.

    Args:
        uri: URI of the form ``data:<type>;base64,<payload>``.

    Returns:
        Tuple of ``(media_type, payload_bytes)``.

    Raises:
        ValueError: If the URI is not a base64 data URI.
    """
    if not uri.startswith("data:"):
        raise ValueError("Not a data URI")
    header, sep, payload = uri[len("data:") :].partition(",")
    if not sep or not header.endswith(";base64"):
        raise ValueError("Only base64 data URIs are supported")
    media_type = header[: -len(";base64")] or "application/octet-stream"
    try:
        return media_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload in data URI: {e}") from e
