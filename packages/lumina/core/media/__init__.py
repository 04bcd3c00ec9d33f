"""Addressable in-process media resources."""

from lumina.core.media.store import (
    MediaHandle,
    MediaReleasedError,
    MediaStore,
    decode_data_uri,
)

__all__ = [
    "MediaHandle",
    "MediaReleasedError",
    "MediaStore",
    "decode_data_uri",
]
