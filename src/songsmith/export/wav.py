"""
16-bit PCM WAV encoding.
"""

import struct
from typing import Optional

import numpy as np

from ..errors import ExportError

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
_PCM = 1


def wav_header(frames: int, sample_rate: int, channels: int) -> bytes:
    """Canonical 44-byte RIFF/WAVE header for 16-bit PCM."""
    block_align = channels * BITS_PER_SAMPLE // 8
    data_size = frames * block_align
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF", 36 + data_size, b"WAVE",
        b"fmt ", 16, _PCM, channels, sample_rate, sample_rate * block_align,
        block_align, BITS_PER_SAMPLE,
        b"data", data_size,
    )


def encode_wav(samples: np.ndarray, sample_rate: int = 44100, channels: Optional[int] = None) -> bytes:
    """
    Encode float samples as a 16-bit PCM WAV file.

    Args:
        samples: Mono buffer of shape ``(frames,)`` or interleavable buffer of
            shape ``(frames, channels)``, nominally in [-1, 1]
        sample_rate: Sample rate in Hz written to the header
        channels: Expected channel count; inferred from the shape when None

    Returns:
        bytes: Exactly ``44 + frames * channels * 2`` bytes

    Raises:
        ExportError: on a shape/channel mismatch or non-finite samples

    Example:
        >>> data = encode_wav(np.array([0.0, 1.0, -1.0]), 8000)
        >>> len(data), data[:4], data[-6:]
        (50, b'RIFF', b'\\x00\\x00\\xff\\x7f\\x01\\x80')
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim == 1:
        samples = samples.reshape(-1, 1)
    elif samples.ndim != 2:
        raise ExportError(f"Expected a 1-D or 2-D sample buffer, got {samples.ndim} dimensions")
    frames, found = samples.shape
    if channels is None:
        channels = found
    if channels < 1:
        raise ExportError(f"Channel count must be at least 1, got {channels}")
    if found != channels:
        raise ExportError(f"Buffer has {found} channels, expected {channels}")
    if sample_rate <= 0:
        raise ExportError(f"Sample rate must be positive, got {sample_rate}")
    if not np.all(np.isfinite(samples)):
        raise ExportError("Sample buffer contains NaN or infinite values")

    # C order flattens (frames, channels) into interleaved frames
    pcm = np.clip(np.round(np.clip(samples, -1.0, 1.0) * 32767), -32768, 32767).astype("<i2")
    data = wav_header(frames, sample_rate, channels) + pcm.tobytes(order="C")

    expected = HEADER_SIZE + frames * channels * 2
    if len(data) != expected:
        raise ExportError(f"Encoded {len(data)} bytes, expected {expected}")
    return data
