"""
Core oscillator functions for note synthesis.
Generates the basic waveforms the instrument recipes are built from.
"""

import numpy as np


def _validate_params(freq: float, amp: float, duration: float, sample_rate: int) -> None:
    """Validate common parameters for oscillator functions."""
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    if not (0 < freq < sample_rate / 2):
        raise ValueError(f"Frequency {freq}Hz out of range (0-{sample_rate / 2}Hz)")
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")
    if amp > 0:
        raise ValueError(f"Amplitude should be negative dB value, got {amp}")


def _db_to_linear(db: float) -> float:
    """Convert dB to linear amplitude."""
    return 10 ** (db / 20)


def _time_axis(duration: float, sample_rate: int) -> np.ndarray:
    num_samples = int(round(duration * sample_rate))
    return np.arange(num_samples) / sample_rate


def generate_sine(freq: float, amp: float, duration: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate a sine wave.
    
    Args:
        freq: Frequency in Hz (0 < freq < Nyquist)
        amp: Amplitude in dB (negative values, e.g., -12)
        duration: Duration in seconds (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Mono audio signal (float64)
    
    Example:
        >>> signal = generate_sine(440.0, -12.0, 1.0)
        >>> len(signal) == 44100  # 1 second at 44.1kHz
        True
    """
    _validate_params(freq, amp, duration, sample_rate)
    t = _time_axis(duration, sample_rate)
    return _db_to_linear(amp) * np.sin(2 * np.pi * freq * t)


def generate_sawtooth(freq: float, amp: float, duration: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate a sawtooth wave.
    
    Args:
        freq: Frequency in Hz (0 < freq < Nyquist)
        amp: Amplitude in dB (negative values, e.g., -12)
        duration: Duration in seconds (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Mono audio signal (float64)
    """
    _validate_params(freq, amp, duration, sample_rate)
    t = _time_axis(duration, sample_rate)
    
    # Sawtooth wave: ramp from -1 to 1
    phase = (freq * t) % 1.0
    return _db_to_linear(amp) * (2 * phase - 1)


def generate_square(freq: float, amp: float, duration: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate a square wave.
    
    Example:
        >>> signal = generate_square(55.0, -24.0, 0.1)
        >>> len(signal) == 4410  # 0.1 seconds at 44.1kHz
        True
    """
    _validate_params(freq, amp, duration, sample_rate)
    t = _time_axis(duration, sample_rate)
    
    # Square wave: sign of the phase ramp, never zero
    square = np.where((freq * t) % 1.0 < 0.5, 1.0, -1.0)
    
    return _db_to_linear(amp) * square
