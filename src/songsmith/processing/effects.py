"""
Saturation used to glue the drum voices.
"""

import numpy as np


def apply_tape_saturation(signal: np.ndarray, drive: float = 2.0) -> np.ndarray:
    """
    Apply analog tape style soft saturation.
    
    Args:
        signal: Input audio signal (numpy array)
        drive: Saturation drive amount (1.0-5.0, higher = more saturation)
    
    Returns:
        numpy.ndarray: Saturated signal (same length as input)
    
    Example:
        >>> import numpy as np
        >>> clean = np.sin(2 * np.pi * 440 * np.arange(4410) / 44100)
        >>> len(apply_tape_saturation(clean, drive=1.5)) == len(clean)
        True
    """
    if not isinstance(signal, np.ndarray):
        raise TypeError("Input signal must be a numpy array")
    if len(signal) == 0:
        raise ValueError("Input signal cannot be empty")
    if not (1.0 <= drive <= 5.0):
        raise ValueError(f"Drive must be between 1.0 and 5.0, got {drive}")
    
    # tanh soft clip, gain compensated
    return np.tanh(signal * drive) / np.tanh(drive)
