"""
Buffer-level helpers for the output stage.
"""

import numpy as np


def normalize_peak(signal: np.ndarray, ceiling: float = 1.0) -> np.ndarray:
    """
    Scale a buffer down so its absolute peak equals ``ceiling``.

    Buffers whose peak is already at or below the ceiling are returned
    unchanged, so quiet material keeps its level and relative dynamics.

    Args:
        signal: Mono or multichannel audio (numpy array)
        ceiling: Maximum allowed absolute sample value (positive)

    Returns:
        numpy.ndarray: The scaled buffer (the input itself when no scaling is needed)

    Example:
        >>> normalize_peak(np.array([0.5, -2.0, 1.0])).tolist()
        [0.25, -1.0, 0.5]
        >>> normalize_peak(np.array([0.5, -0.25])).tolist()
        [0.5, -0.25]
    """
    if not isinstance(signal, np.ndarray):
        raise TypeError("Input signal must be a numpy array")
    if ceiling <= 0:
        raise ValueError(f"Ceiling must be positive, got {ceiling}")
    if signal.size == 0:
        return signal

    peak = float(np.max(np.abs(signal)))
    if peak <= ceiling:
        return signal
    return signal * (ceiling / peak)


def to_channels(mono: np.ndarray, channels: int) -> np.ndarray:
    """Duplicate a mono buffer into shape ``(frames, channels)``."""
    if channels == 1:
        return mono.reshape(-1, 1)
    return np.repeat(mono.reshape(-1, 1), channels, axis=1)
