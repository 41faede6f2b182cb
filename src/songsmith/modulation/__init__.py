"""Envelope generators for amplitude and pitch contours."""

from .modulation import (
    generate_adsr_envelope,
    generate_percussive_envelope,
    generate_pitch_envelope,
)

__all__ = [
    "generate_adsr_envelope",
    "generate_percussive_envelope",
    "generate_pitch_envelope",
]
