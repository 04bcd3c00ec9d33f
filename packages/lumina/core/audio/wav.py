"""WAV container encoding for raw linear-PCM speech payloads.

Speech backends return base64-encoded raw PCM (24 kHz, mono, 16-bit signed,
little-endian) with no container. Audio players need the canonical 44-byte
RIFF/WAVE header in front of the samples, which this module builds.

Layout (all integers little-endian):

    0   "RIFF"          4   36 + data_length     8   "WAVE"
    12  "fmt "          16  16 (fmt chunk size)  20  1 (PCM)
    22  channels        24  sample_rate          28  byte_rate
    32  block_align     34  bits_per_sample      36  "data"
    40  data_length     44  sample bytes
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import struct
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from lumina.core.media.store import MediaHandle, MediaStore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
NUM_CHANNELS = 1
BITS_PER_SAMPLE = 16
HEADER_SIZE = 44
WAV_MEDIA_TYPE = "audio/wav"

# RIFF header minus the 8 bytes of "RIFF" + chunk size
_RIFF_OVERHEAD = HEADER_SIZE - 8
_FMT_CHUNK_SIZE = 16
_FORMAT_PCM = 1

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")
_WHITESPACE = re.compile(r"\s+")


class WavEncodingError(ValueError):
    """Raised when a PCM payload cannot be turned into a WAV container."""


class WavHeader(BaseModel):
    """Decoded fields of a canonical 44-byte WAV header."""

    model_config = ConfigDict(frozen=True)

    chunk_size: int
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_length: int


def decode_pcm_payload(payload: str) -> bytes:
    """Decode a base64 transport string into raw PCM bytes.

    Whitespace anywhere in the string (line wrapping, trailing newlines) is
    stripped before decoding.

    Args:
        payload: Base64-encoded PCM.

    Returns:
        Raw sample bytes.

    Raises:
        WavEncodingError: If the payload is not valid base64 or decodes to nothing.
    """
    cleaned = _WHITESPACE.sub("", payload)
    try:
        pcm = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise WavEncodingError(f"Audio payload is not valid base64: {e}") from e

    if not pcm:
        raise WavEncodingError("Audio payload decoded to zero bytes")
    return pcm


def build_wav_header(
    data_length: int,
    *,
    sample_rate: int = SAMPLE_RATE,
    channels: int = NUM_CHANNELS,
    bits_per_sample: int = BITS_PER_SAMPLE,
) -> bytes:
    """Build the 44-byte RIFF/WAVE header for uncompressed PCM.

    Args:
        data_length: Number of sample bytes that follow the header.
        sample_rate: Samples per second.
        channels: Channel count.
        bits_per_sample: Bit depth of a single sample.

    Returns:
        Header bytes (always HEADER_SIZE long).
    """
    if data_length < 0:
        raise WavEncodingError(f"data_length must be non-negative, got {data_length}")

    bytes_per_sample = bits_per_sample // 8
    byte_rate = sample_rate * channels * bytes_per_sample
    block_align = channels * bytes_per_sample

    return _HEADER_STRUCT.pack(
        b"RIFF",
        _RIFF_OVERHEAD + data_length,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _FORMAT_PCM,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_length,
    )


def encode_wav(pcm: bytes) -> bytes:
    """Wrap raw 24 kHz mono 16-bit PCM in a WAV container.

    Sample bytes are copied verbatim after the header.

    Raises:
        WavEncodingError: If ``pcm`` is empty.
    """
    if not pcm:
        raise WavEncodingError("Cannot encode an empty PCM payload")
    return build_wav_header(len(pcm)) + bytes(pcm)


def encode_wav_from_base64(payload: str) -> bytes:
    """Decode a base64 PCM transport string and wrap it in a WAV container."""
    return encode_wav(decode_pcm_payload(payload))


def parse_wav_header(data: bytes) -> WavHeader:
    """Parse the canonical 44-byte header at the start of a WAV byte stream.

    Args:
        data: WAV bytes (at least HEADER_SIZE long).

    Returns:
        WavHeader with the decoded fields.

    Raises:
        WavEncodingError: If the data is too short or the chunk tags are wrong.
    """
    if len(data) < HEADER_SIZE:
        raise WavEncodingError(f"WAV data too short: {len(data)} bytes (need {HEADER_SIZE})")

    (
        riff,
        chunk_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_length,
    ) = _HEADER_STRUCT.unpack_from(data, 0)

    if riff != b"RIFF" or wave != b"WAVE":
        raise WavEncodingError("Missing RIFF/WAVE tags")
    if fmt != b"fmt " or fmt_size != _FMT_CHUNK_SIZE:
        raise WavEncodingError("Unsupported fmt chunk")
    if data_tag != b"data":
        raise WavEncodingError("Missing data chunk tag")

    return WavHeader(
        chunk_size=chunk_size,
        audio_format=audio_format,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_length=data_length,
    )


def create_wav_handle(payload: str, store: MediaStore) -> MediaHandle:
    """Encode a base64 PCM payload and register it as a playable resource.

    Args:
        payload: Base64-encoded PCM from the speech backend.
        store: Media store that owns the resulting handle.

    Returns:
        Handle tagged with the ``audio/wav`` media type.

    Raises:
        WavEncodingError: If the payload is malformed or empty.
    """
    wav_bytes = encode_wav_from_base64(payload)
    handle = store.create(wav_bytes, WAV_MEDIA_TYPE)
    logger.debug(
        "Encoded %d PCM bytes into %s",
        len(wav_bytes) - HEADER_SIZE,
        handle.uri,
    )
    return handle
