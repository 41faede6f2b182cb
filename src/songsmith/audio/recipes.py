"""
Instrument recipes.

Each InstrumentKind has one fixed recipe: an oscillator stack, an amplitude
envelope and a filter. ``render_note`` turns one note into its complete clip
(held part plus release tail). It is deterministic, so the live voice bank and
the offline renderer produce the same samples for the same note.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional, Tuple

import numpy as np

from ..composition.model import InstrumentKind, midi_to_frequency
from ..modulation.modulation import generate_adsr_envelope
from ..processing.filters import lowpass_filter
from .drums import synthesize_hihat, synthesize_kick, synthesize_snare
from .oscillators import generate_sawtooth, generate_sine, generate_square

logger = logging.getLogger(__name__)

# Percussion pitches below this are kicks, up to the hat boundary are snares
KICK_BELOW = 38
HAT_FROM = 42


@dataclass(frozen=True)
class Recipe:
    """
    Fixed synthesis settings for one instrument family.

    ``layers`` are ``(oscillator, frequency ratio, level dB)`` tuples summed
    before the envelope; ``cutoff`` is the lowpass corner in Hz, or ``None``.
    """
    layers: Tuple[Tuple[Callable, float, float], ...]
    attack: float
    decay: float
    sustain: float
    release: float
    cutoff: Optional[float] = None


RECIPES: Dict[InstrumentKind, Recipe] = {
    InstrumentKind.LEAD: Recipe(
        layers=((generate_sawtooth, 1.0, -12.0),),
        attack=0.01, decay=0.1, sustain=0.6, release=0.3,
        cutoff=3000.0,
    ),
    InstrumentKind.BASS: Recipe(
        layers=((generate_square, 1.0, -14.0), (generate_sine, 0.5, -10.0)),
        attack=0.005, decay=0.2, sustain=0.5, release=0.15,
        cutoff=800.0,
    ),
    InstrumentKind.PAD: Recipe(
        # three saws spread by +-8 cents
        layers=(
            (generate_sawtooth, 1.0, -18.0),
            (generate_sawtooth, 2 ** (8 / 1200), -18.0),
            (generate_sawtooth, 2 ** (-8 / 1200), -18.0),
        ),
        attack=0.4, decay=0.3, sustain=0.8, release=0.8,
        cutoff=1500.0,
    ),
    # percussion is synthesised per hit by drum_hit(); only the release is used
    InstrumentKind.PERCUSSION: Recipe(layers=(), attack=0.0, decay=0.0, sustain=0.0, release=0.3),
}

def _check_recipes() -> None:
    missing = set(InstrumentKind) - set(RECIPES)
    if missing:
        raise RuntimeError(f"No synthesis recipe for {sorted(k.value for k in missing)}")


_check_recipes()

# Longest tail any note can ring past its nominal end
MAX_RELEASE_SECONDS = max(r.release for r in RECIPES.values())


def drum_hit(pitch: int, sample_rate: int, rng: np.random.Generator) -> np.ndarray:
    """Pick a drum voice from the pitch, following the General MIDI layout."""
    if pitch < KICK_BELOW:
        return synthesize_kick(decay_ms=250.0, sample_rate=sample_rate, rng=rng)
    if pitch < HAT_FROM:
        return synthesize_snare(decay_ms=180.0, sample_rate=sample_rate, rng=rng)
    # 46 is the open hi-hat in General MIDI
    return synthesize_hihat(closed=pitch != 46, sample_rate=sample_rate, rng=rng)


def _note_rng(kind: InstrumentKind, pitch: int, frames: int) -> np.random.Generator:
    kind_index = list(InstrumentKind).index(kind)
    return np.random.default_rng([kind_index, pitch, frames])


# Byte budget for rendered clips kept between notes
CLIP_CACHE_BYTES = 64 * 1024 * 1024


class ClipCache:
    """
    Least-recently-used store of rendered clips, bounded by total bytes.

    A clip larger than the whole budget is never stored. Safe to share
    between the transport's render thread and the offline renderer.

    Example:
        >>> cache = ClipCache(max_bytes=1024)
        >>> cache.put("a", np.zeros(100))
        >>> cache.put("b", np.zeros(100))
        >>> "a" in cache, cache.nbytes
        (False, 800)
    """

    def __init__(self, max_bytes: int = CLIP_CACHE_BYTES):
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be non-negative, got {max_bytes}")
        self.max_bytes = max_bytes
        self.hits = 0
        self.misses = 0
        self._clips: "OrderedDict[Hashable, np.ndarray]" = OrderedDict()
        self._nbytes = 0
        self._lock = threading.Lock()

    @property
    def nbytes(self) -> int:
        return self._nbytes

    def __len__(self) -> int:
        return len(self._clips)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._clips

    def get(self, key: Hashable) -> Optional[np.ndarray]:
        with self._lock:
            clip = self._clips.get(key)
            if clip is None:
                self.misses += 1
                return None
            self._clips.move_to_end(key)
            self.hits += 1
            return clip

    def put(self, key: Hashable, clip: np.ndarray) -> None:
        if clip.nbytes > self.max_bytes:
            logger.debug("Clip of %d bytes exceeds the cache budget, not cached", clip.nbytes)
            return
        with self._lock:
            old = self._clips.pop(key, None)
            if old is not None:
                self._nbytes -= old.nbytes
            self._clips[key] = clip
            self._nbytes += clip.nbytes
            while self._nbytes > self.max_bytes:
                _, evicted = self._clips.popitem(last=False)
                self._nbytes -= evicted.nbytes

    def clear(self) -> None:
        with self._lock:
            self._clips.clear()
            self._nbytes = 0


CLIP_CACHE = ClipCache()


def _synthesize(kind: InstrumentKind, pitch: int, frames: int, sample_rate: int) -> np.ndarray:
    rng = _note_rng(kind, pitch, frames)
    if kind is InstrumentKind.PERCUSSION:
        clip = drum_hit(pitch, sample_rate, rng)
    else:
        recipe = RECIPES[kind]
        gate = frames / sample_rate
        freq = min(midi_to_frequency(pitch), sample_rate * 0.45)
        total = gate + recipe.release
        clip = np.zeros(int(round(gate * sample_rate)) + int(round(recipe.release * sample_rate)))
        for oscillator, ratio, level_db in recipe.layers:
            wave = oscillator(freq * ratio, level_db, total, sample_rate)
            n = min(len(wave), len(clip))
            clip[:n] += wave[:n]
        envelope = generate_adsr_envelope(recipe.attack, recipe.decay, recipe.sustain, recipe.release,
                                          gate, sample_rate)
        clip = clip * envelope
        if recipe.cutoff is not None and len(clip) > 1:
            clip = lowpass_filter(clip, recipe.cutoff, sample_rate)
    clip = np.ascontiguousarray(clip, dtype=np.float64)
    clip.setflags(write=False)
    return clip


def _render_unit(kind: InstrumentKind, pitch: int, frames: int, sample_rate: int) -> np.ndarray:
    """Full-velocity clip for one note, cached and read-only."""
    key = (kind, pitch, frames, sample_rate)
    clip = CLIP_CACHE.get(key)
    if clip is None:
        clip = _synthesize(kind, pitch, frames, sample_rate)
        CLIP_CACHE.put(key, clip)
    return clip


def note_frames(duration: float, sample_rate: int) -> int:
    """Held length of a note in samples, never below one sample."""
    return max(1, int(round(duration * sample_rate)))


def render_note(kind: InstrumentKind, pitch: int, velocity: float, duration: float,
                sample_rate: int = 44100) -> np.ndarray:
    """
    Render one note with its instrument's recipe.

    Args:
        kind: Instrument family selecting the recipe
        pitch: MIDI note number (0-127)
        velocity: Loudness (0.0-1.0), applied as a linear gain
        duration: Held time in seconds before release begins (ignored by percussion)
        sample_rate: Sample rate in Hz

    Returns:
        numpy.ndarray: Mono clip covering the held part and the release tail

    Example:
        >>> a = render_note(InstrumentKind.LEAD, 69, 0.8, 0.5, 8000)
        >>> b = render_note(InstrumentKind.LEAD, 69, 0.8, 0.5, 8000)
        >>> len(a) == 4000 + 2400 and bool(np.array_equal(a, b))
        True
    """
    if not (0 <= pitch <= 127):
        raise ValueError(f"Pitch {pitch} out of range (0-127)")
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    frames = 0 if kind is InstrumentKind.PERCUSSION else note_frames(duration, sample_rate)
    unit = _render_unit(kind, pitch, frames, sample_rate)
    velocity = min(1.0, max(0.0, float(velocity)))
    if velocity == 1.0:
        return unit
    clip = unit * velocity
    clip.setflags(write=False)
    return clip
