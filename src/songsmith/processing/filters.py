"""
Filter functions for note synthesis.
Provides the frequency shaping used by the instrument recipes and drum voices.
"""

import numpy as np
from scipy import signal


def _validate_filter_params(input_signal: np.ndarray, cutoff_freq: float, sample_rate: int) -> None:
    """Validate common parameters for filter functions."""
    if not isinstance(input_signal, np.ndarray):
        raise TypeError("Input signal must be a numpy array")
    if len(input_signal) == 0:
        raise ValueError("Input signal cannot be empty")
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    if cutoff_freq <= 0:
        raise ValueError(f"Cutoff frequency must be positive, got {cutoff_freq}")


def _normalized(freq: float, sample_rate: int) -> float:
    """Cutoff as a fraction of Nyquist, kept strictly inside (0, 1)."""
    nyquist = sample_rate / 2
    return min(freq, nyquist * 0.99) / nyquist


def _zero_phase(b: np.ndarray, a: np.ndarray, input_signal: np.ndarray) -> np.ndarray:
    # filtfilt needs more samples than its edge padding; very short clips get a shorter pad
    padlen = min(3 * max(len(a), len(b)), len(input_signal) - 1)
    return signal.filtfilt(b, a, input_signal, padlen=padlen)


def lowpass_filter(input_signal: np.ndarray, cutoff_freq: float, sample_rate: int = 44100, resonance: float = 1.0) -> np.ndarray:
    """
    Apply a lowpass filter to remove high frequencies.
    
    Cutoffs at or above Nyquist are pulled just below it, so recipes can
    track high notes without special-casing the sample rate.
    
    Args:
        input_signal: Input audio signal (numpy array)
        cutoff_freq: Cutoff frequency in Hz (positive)
        sample_rate: Sample rate in Hz (default 44100)
        resonance: Filter resonance/Q factor (default 1.0, higher = more resonant)
    
    Returns:
        numpy.ndarray: Filtered audio signal (same length as input)
    
    Example:
        >>> import numpy as np
        >>> noise = np.random.default_rng(0).normal(0, 0.1, 1000)
        >>> len(lowpass_filter(noise, 1000.0)) == len(noise)
        True
    """
    _validate_filter_params(input_signal, cutoff_freq, sample_rate)
    if resonance <= 0:
        raise ValueError(f"Resonance must be positive, got {resonance}")
    
    # Order 2 Butterworth keeps the phase response gentle
    b, a = signal.butter(2, _normalized(cutoff_freq, sample_rate), btype='low')
    
    # Simplified resonance: sharpen the pole pair
    if resonance > 1.0:
        a[1] = a[1] / resonance
    
    return _zero_phase(b, a, input_signal)


def highpass_filter(input_signal: np.ndarray, cutoff_freq: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Apply a highpass filter to remove low frequencies.
    
    Args:
        input_signal: Input audio signal (numpy array)
        cutoff_freq: Cutoff frequency in Hz (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Filtered audio signal (same length as input)
    """
    _validate_filter_params(input_signal, cutoff_freq, sample_rate)
    b, a = signal.butter(2, _normalized(cutoff_freq, sample_rate), btype='high')
    return _zero_phase(b, a, input_signal)


def bandpass_filter(input_signal: np.ndarray, center_freq: float, bandwidth: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Apply a bandpass filter to isolate a frequency range.
    
    Args:
        input_signal: Input audio signal (numpy array)
        center_freq: Center frequency in Hz (positive)
        bandwidth: Bandwidth in Hz (positive, determines filter width)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Filtered audio signal (same length as input)
    """
    _validate_filter_params(input_signal, center_freq, sample_rate)
    if bandwidth <= 0:
        raise ValueError(f"Bandwidth must be positive, got {bandwidth}")
    
    nyquist = sample_rate / 2
    low_freq = max(center_freq - bandwidth / 2, 1.0)
    high_freq = min(center_freq + bandwidth / 2, nyquist * 0.99)
    if low_freq >= high_freq:
        raise ValueError(f"Band {center_freq}±{bandwidth / 2}Hz does not fit below Nyquist")
    
    b, a = signal.butter(2, [low_freq / nyquist, high_freq / nyquist], btype='band')
    return _zero_phase(b, a, input_signal)
