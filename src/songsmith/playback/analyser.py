"""
Rolling analysis of the signal currently being played.

The audio callback pushes every rendered block; the visualizer pulls one
snapshot per animation frame. Snapshots always have the configured fixed
size and are all-zero before anything has played.
"""

import threading
from dataclasses import dataclass

import numpy as np
from scipy import signal


@dataclass(frozen=True)
class AudioAnalysis:
    """Read-only views of the analyser's buffers; overwritten on each refresh."""
    waveform: np.ndarray   # float32 in [-1, 1]
    spectrum: np.ndarray   # uint8 magnitude bins in [0, 255]


class Analyser:
    """
    Time-domain window and magnitude spectrum of the live signal.

    The spectrum follows the browser analyser node's conventions: a
    Blackman-windowed FFT over ``2 * size`` samples, exponential smoothing
    over time, and decibels in ``[min_db, max_db]`` mapped onto 0..255.

    Example:
        >>> analyser = Analyser(size=256)
        >>> snap = analyser.snapshot()
        >>> len(snap.waveform), len(snap.spectrum), int(snap.spectrum.max())
        (256, 256, 0)
    """

    def __init__(self, size: int = 1024, smoothing: float = 0.8,
                 min_db: float = -100.0, max_db: float = -30.0):
        if size <= 0:
            raise ValueError(f"Analyser size must be positive, got {size}")
        if not (0.0 <= smoothing < 1.0):
            raise ValueError(f"Smoothing must be in [0, 1), got {smoothing}")
        if min_db >= max_db:
            raise ValueError("min_db must be below max_db")
        self.size = size
        self.fft_size = 2 * size
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db

        self._window = signal.get_window("blackman", self.fft_size, fftbins=False)
        self._ring = np.zeros(self.fft_size, dtype=np.float64)
        self._write = 0
        self._lock = threading.Lock()

        self._smoothed = np.zeros(size, dtype=np.float64)
        self._waveform = np.zeros(size, dtype=np.float32)
        self._spectrum = np.zeros(size, dtype=np.uint8)
        self._view = AudioAnalysis(_readonly(self._waveform), _readonly(self._spectrum))

    def push(self, block: np.ndarray) -> None:
        """Append rendered samples to the ring buffer (audio thread)."""
        block = np.asarray(block, dtype=np.float64).reshape(-1)
        if len(block) >= self.fft_size:
            block = block[-self.fft_size:]
        n = len(block)
        if n == 0:
            return
        with self._lock:
            first = min(n, self.fft_size - self._write)
            self._ring[self._write:self._write + first] = block[:first]
            self._ring[:n - first] = block[first:]
            self._write = (self._write + n) % self.fft_size

    def _latest(self) -> np.ndarray:
        with self._lock:
            return np.roll(self._ring, -self._write)

    def refresh(self) -> AudioAnalysis:
        """Recompute waveform and spectrum from the most recent samples, in place."""
        samples = self._latest()
        self._waveform[:] = np.clip(samples[-self.size:], -1.0, 1.0)

        magnitude = np.abs(np.fft.rfft(samples * self._window))[:self.size] / self.fft_size
        self._smoothed *= self.smoothing
        self._smoothed += (1.0 - self.smoothing) * magnitude
        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._smoothed)
        scaled = 255.0 * (db - self.min_db) / (self.max_db - self.min_db)
        self._spectrum[:] = np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0, 255).astype(np.uint8)
        return self._view

    def snapshot(self) -> AudioAnalysis:
        """Most recently computed analysis, without recomputing."""
        return self._view

    def reset(self) -> None:
        """Return to an all-silent state."""
        with self._lock:
            self._ring[:] = 0.0
            self._write = 0
        self._smoothed[:] = 0.0
        self._waveform[:] = 0.0
        self._spectrum[:] = 0


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view
