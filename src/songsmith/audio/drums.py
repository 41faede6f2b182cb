"""
Drum voice synthesizers for the percussion instrument.

Single-hit generators; each returns one complete drum hit that the voice bank
or offline renderer places in time. Noise layers draw from the supplied
random generator, so a seeded generator gives a repeatable hit.
"""

import numpy as np

from .oscillators import generate_sine
from .noise import generate_white_noise, generate_pink_noise
from ..processing.filters import highpass_filter, bandpass_filter
from ..processing.effects import apply_tape_saturation
from ..modulation.modulation import generate_percussive_envelope, generate_pitch_envelope


def _normalize(hit: np.ndarray, peak: float) -> np.ndarray:
    max_val = np.max(np.abs(hit))
    if max_val > 0:
        hit = hit / max_val * peak
    return hit


def synthesize_kick(
    fundamental: float = 55.0,
    pitch_start: float = 150.0,
    pitch_time_ms: float = 30.0,
    decay_ms: float = 250.0,
    click_amount: float = 0.3,
    sample_rate: int = 44100,
    rng: np.random.Generator = None,
) -> np.ndarray:
    """
    Synthesize a kick drum with pitch sweep and optional click.
    
    Args:
        fundamental: Final pitch frequency in Hz (20-200)
        pitch_start: Starting pitch frequency in Hz, above the fundamental
        pitch_time_ms: Time for pitch sweep in milliseconds
        decay_ms: Decay time in milliseconds, also the hit length
        click_amount: Amount of high-frequency click (0.0-1.0)
        sample_rate: Sample rate in Hz
        rng: Random generator for the click noise
    
    Returns:
        numpy.ndarray: Mono kick drum hit
    
    Example:
        >>> kick = synthesize_kick(decay_ms=120, rng=np.random.default_rng(1))
        >>> len(kick) == 5292  # 120ms at 44.1kHz
        True
    """
    if not (20 <= fundamental <= 200):
        raise ValueError(f"Fundamental frequency {fundamental}Hz out of range (20-200Hz)")
    if pitch_start <= fundamental:
        raise ValueError("Start pitch must be higher than fundamental")
    if not (0.0 <= click_amount <= 1.0):
        raise ValueError(f"Click amount must be 0-1, got {click_amount}")
    
    duration = decay_ms / 1000.0
    
    # Body: integrate the swept frequency curve into phase
    pitch_curve = generate_pitch_envelope(pitch_start, fundamental, pitch_time_ms, duration, sample_rate)
    phase = 2 * np.pi * np.cumsum(pitch_curve) / sample_rate
    kick_body = np.sin(phase) * generate_percussive_envelope(0.0, decay_ms, duration, sample_rate)
    
    if click_amount > 0:
        click_ms = 5.0
        click = generate_white_noise(-12.0, click_ms / 1000.0, sample_rate, rng=rng)
        click = highpass_filter(click, 2000.0, sample_rate)
        click *= generate_percussive_envelope(0.0, click_ms, click_ms / 1000.0, sample_rate)
        n = min(len(click), len(kick_body))
        kick_body[:n] += click[:n] * click_amount
    
    kick_body = apply_tape_saturation(kick_body, drive=1.2)
    return _normalize(kick_body, 0.8)


def synthesize_snare(
    tone_freq: float = 200.0,
    decay_ms: float = 180.0,
    tone_mix: float = 0.3,
    sample_rate: int = 44100,
    rng: np.random.Generator = None,
) -> np.ndarray:
    """
    Synthesize a snare drum with tone body and noise layers.
    
    Args:
        tone_freq: Frequency of the snare tone component in Hz (100-500)
        decay_ms: Decay time in milliseconds, also the hit length
        tone_mix: Mix of tone vs noise (0.0=all noise, 1.0=all tone)
        sample_rate: Sample rate in Hz
        rng: Random generator for the noise layers
    
    Returns:
        numpy.ndarray: Mono snare drum hit
    """
    if not (100 <= tone_freq <= 500):
        raise ValueError(f"Tone frequency {tone_freq}Hz out of range (100-500Hz)")
    if not (0.0 <= tone_mix <= 1.0):
        raise ValueError(f"Tone mix must be 0-1, got {tone_mix}")
    
    duration = decay_ms / 1000.0
    
    tone = generate_sine(tone_freq, -6.0, duration, sample_rate)
    tone += generate_sine(tone_freq * 2, -12.0, duration, sample_rate) * 0.3
    
    noise = generate_pink_noise(-6.0, duration, sample_rate, rng=rng)
    noise = bandpass_filter(noise, 2000.0, 2000.0, sample_rate)
    snap = generate_white_noise(-12.0, duration, sample_rate, rng=rng)
    noise = noise + highpass_filter(snap, 5000.0, sample_rate) * 0.2
    
    envelope = generate_percussive_envelope(0.0, decay_ms, duration, sample_rate)
    snare = (tone * tone_mix + noise * (1.0 - tone_mix)) * envelope
    
    snare = apply_tape_saturation(snare, drive=1.1)
    return _normalize(snare, 0.7)


def synthesize_hihat(
    closed: bool = True,
    decay_ms: float = None,
    tone_freq: float = 8000.0,
    sample_rate: int = 44100,
    rng: np.random.Generator = None,
) -> np.ndarray:
    """
    Synthesize a hi-hat using filtered noise.
    
    Args:
        closed: True for closed hi-hat, False for open
        decay_ms: Decay time in milliseconds (None for default based on closed/open)
        tone_freq: Center frequency for filtering
        sample_rate: Sample rate in Hz
        rng: Random generator for the noise source
    
    Returns:
        numpy.ndarray: Mono hi-hat hit
    
    Example:
        >>> closed_hh = synthesize_hihat(closed=True, rng=np.random.default_rng(3))
        >>> open_hh = synthesize_hihat(closed=False, rng=np.random.default_rng(3))
        >>> len(closed_hh) < len(open_hh)  # Closed is shorter
        True
    """
    if decay_ms is None:
        decay_ms = 60.0 if closed else 300.0
    
    duration = decay_ms / 1000.0
    
    noise = generate_white_noise(-6.0, duration, sample_rate, rng=rng)
    noise = highpass_filter(noise, min(7000.0, sample_rate * 0.4), sample_rate)
    noise = bandpass_filter(noise, min(tone_freq, sample_rate * 0.4), 3000.0, sample_rate)
    
    envelope = generate_percussive_envelope(0.0, decay_ms, duration, sample_rate)
    hihat = apply_tape_saturation(noise * envelope, drive=1.05)
    return _normalize(hihat, 0.6)
