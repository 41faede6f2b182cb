"""
Envelope generators for note synthesis.
Produce the amplitude and pitch contours applied by the instrument recipes.
"""

import numpy as np


def _validate_modulation_params(duration: float, sample_rate: int) -> None:
    """Validate common parameters for modulation functions."""
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")


def _adsr_level(t: np.ndarray, attack: float, decay: float, sustain_level: float) -> np.ndarray:
    """Gated ADSR level at times ``t`` (seconds since note-on)."""
    level = np.full(t.shape, sustain_level, dtype=np.float64)
    if decay > 0:
        in_decay = (t >= attack) & (t < attack + decay)
        level[in_decay] = 1.0 + (sustain_level - 1.0) * (t[in_decay] - attack) / decay
    if attack > 0:
        in_attack = t < attack
        level[in_attack] = t[in_attack] / attack
    return level


def generate_adsr_envelope(attack: float, decay: float, sustain_level: float, release: float,
                           gate: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate an ADSR (Attack, Decay, Sustain, Release) envelope for a held note.
    
    The note is held for ``gate`` seconds and then released, so the envelope is
    ``gate + release`` seconds long. Notes shorter than attack + decay are
    released from whatever level they reached.
    
    Args:
        attack: Attack time in seconds (>= 0)
        decay: Decay time in seconds (>= 0)
        sustain_level: Sustain level (0.0 to 1.0)
        release: Release time in seconds (>= 0)
        gate: Time the note is held, in seconds (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Control data array (float64)
    
    Example:
        >>> env = generate_adsr_envelope(0.1, 0.2, 0.7, 0.5, 1.5)
        >>> len(env) == 88200  # 2 seconds at 44.1kHz
        True
        >>> bool(np.max(env) <= 1.0)  # Peak should not exceed 1.0
        True
    """
    _validate_modulation_params(gate, sample_rate)
    if attack < 0 or decay < 0 or release < 0:
        raise ValueError("Attack, decay, and release times must be non-negative")
    if not (0.0 <= sustain_level <= 1.0):
        raise ValueError(f"Sustain level must be between 0.0 and 1.0, got {sustain_level}")
    
    gate_samples = int(round(gate * sample_rate))
    release_samples = int(round(release * sample_rate))
    
    # Held phase: attack, decay, sustain
    held = _adsr_level(np.arange(gate_samples) / sample_rate, attack, decay, sustain_level)
    
    # Release phase: level at note-off down to 0
    release_from = float(_adsr_level(np.array([gate_samples / sample_rate]), attack, decay, sustain_level)[0])
    tail = release_from * (1.0 - np.arange(release_samples) / max(release_samples, 1))
    
    return np.concatenate([held, tail])


def generate_percussive_envelope(attack_ms: float, decay_ms: float, duration: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate a fast AD envelope optimized for percussive sounds.
    
    Args:
        attack_ms: Attack time in milliseconds (>= 0, typically 0-10 for drums)
        decay_ms: Decay time in milliseconds (>= 0, typically 50-500 for drums)
        duration: Total duration in seconds (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Amplitude envelope array (float64, 0.0 to 1.0)
    
    Example:
        >>> env = generate_percussive_envelope(5.0, 100.0, 0.2)
        >>> len(env) == 8820  # 0.2 seconds at 44.1kHz
        True
    """
    _validate_modulation_params(duration, sample_rate)
    if attack_ms < 0 or decay_ms < 0:
        raise ValueError("Attack and decay times must be non-negative")
    
    attack = attack_ms / 1000.0
    decay = decay_ms / 1000.0
    if attack + decay > duration + 1e-9:
        raise ValueError("Sum of attack and decay times exceeds total duration")
    
    num_samples = int(round(duration * sample_rate))
    envelope = np.zeros(num_samples)
    
    attack_samples = min(int(round(attack * sample_rate)), num_samples)
    decay_samples = min(int(round(decay * sample_rate)), num_samples - attack_samples)
    
    # Attack phase: 0 to 1
    if attack_samples > 0:
        envelope[:attack_samples] = np.linspace(0, 1, attack_samples)
    
    # Decay phase: 1 to 0, exponential for a natural drum tail
    if decay_samples > 0:
        curve = np.exp(-5.0 * np.arange(decay_samples) / decay_samples)
        curve = (curve - curve[-1]) / (1.0 - curve[-1]) if decay_samples > 1 else curve
        envelope[attack_samples:attack_samples + decay_samples] = curve
    
    return envelope


def generate_pitch_envelope(start_freq: float, end_freq: float, time_ms: float, duration: float, sample_rate: int = 44100) -> np.ndarray:
    """
    Generate a pitch sweep envelope for drum synthesis (e.g., kick drum pitch drops).
    
    Args:
        start_freq: Starting frequency in Hz (positive)
        end_freq: Ending frequency in Hz (positive)
        time_ms: Time to complete the sweep in milliseconds (>= 0)
        duration: Total duration in seconds (positive)
        sample_rate: Sample rate in Hz (default 44100)
    
    Returns:
        numpy.ndarray: Frequency curve array (float64, in Hz)
    
    Example:
        >>> env = generate_pitch_envelope(150.0, 60.0, 10.0, 0.2)
        >>> bool(env[0] >= env[-1])  # Should sweep from high to low
        True
    """
    _validate_modulation_params(duration, sample_rate)
    if start_freq <= 0 or end_freq <= 0:
        raise ValueError("Sweep frequencies must be positive")
    if time_ms < 0:
        raise ValueError("Sweep time must be non-negative")
    
    sweep_time = time_ms / 1000.0
    if sweep_time > duration:
        raise ValueError("Sweep time exceeds total duration")
    
    num_samples = int(round(duration * sample_rate))
    envelope = np.full(num_samples, float(end_freq))
    
    sweep_samples = int(round(sweep_time * sample_rate))
    if sweep_samples > 0:
        # Exponential sweep for a more natural pitch decay
        envelope[:sweep_samples] = np.exp(np.linspace(np.log(start_freq), np.log(end_freq), sweep_samples))
    
    return envelope
