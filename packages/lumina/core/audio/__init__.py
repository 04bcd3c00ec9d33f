"""Audio container encoding for synthesized speech."""

from lumina.core.audio.wav import (
    BITS_PER_SAMPLE,
    HEADER_SIZE,
    NUM_CHANNELS,
    SAMPLE_RATE,
    WAV_MEDIA_TYPE,
    WavEncodingError,
    WavHeader,
    build_wav_header,
    create_wav_handle,
    decode_pcm_payload,
    encode_wav,
    encode_wav_from_base64,
    parse_wav_header,
)

__all__ = [
    "BITS_PER_SAMPLE",
    "HEADER_SIZE",
    "NUM_CHANNELS",
    "SAMPLE_RATE",
    "WAV_MEDIA_TYPE",
    "WavEncodingError",
    "WavHeader",
    "build_wav_header",
    "create_wav_handle",
    "decode_pcm_payload",
    "encode_wav",
    "encode_wav_from_base64",
    "parse_wav_header",
]
