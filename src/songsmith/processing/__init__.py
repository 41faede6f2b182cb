"""
Processing module: filters and saturation applied by the instrument recipes.
"""

from .filters import (
    lowpass_filter,
    highpass_filter,
    bandpass_filter,
)

from .effects import apply_tape_saturation

__all__ = [
    # Filters
    "lowpass_filter",
    "highpass_filter",
    "bandpass_filter",
    # Effects
    "apply_tape_saturation",
]
