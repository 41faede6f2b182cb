"""
Voice bank: polyphonic note playback on a sample clock.

The bank owns every sounding voice. Notes are triggered with an absolute
start time on the bank's own clock (seconds of audio rendered so far), which
lets the transport schedule them ahead of time. The audio callback pulls
blocks with ``render``; ``release_all`` may be called from any thread.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..composition.model import InstrumentKind
from .recipes import note_frames, render_note

logger = logging.getLogger(__name__)

# Fade applied when a voice is cut short by release_all() or stealing
FORCED_RELEASE_SECONDS = 0.02


@dataclass(frozen=True)
class VoiceHandle:
    id: int
    start_time: float
    dropped: bool = False


class Voice:
    """One sounding note: a rendered clip placed at an absolute frame."""

    __slots__ = ("id", "kind", "pitch", "velocity", "clip", "start_frame", "gate_end",
                 "release_frame", "release_length")

    def __init__(self, voice_id: int, kind: InstrumentKind, pitch: int, velocity: float,
                 clip: np.ndarray, start_frame: int, gate_frames: int):
        self.id = voice_id
        self.kind = kind
        self.pitch = pitch
        self.velocity = velocity
        self.clip = clip
        self.start_frame = start_frame
        self.gate_end = start_frame + min(gate_frames, len(clip))
        self.release_frame: Optional[int] = None
        self.release_length = 1

    @property
    def end_frame(self) -> int:
        natural = self.start_frame + len(self.clip)
        if self.release_frame is None:
            return natural
        return min(natural, self.release_frame + self.release_length)

    def is_held(self, frame: int) -> bool:
        """True until the note's gate closes or it is forced into release."""
        return self.release_frame is None and frame < self.gate_end

    def force_release(self, frame: int, length: int) -> None:
        frame = max(frame, self.start_frame)
        if self.release_frame is None or frame < self.release_frame:
            self.release_frame = frame
            self.release_length = max(1, length)

    def mix_into(self, block: np.ndarray, block_start: int) -> None:
        """Add this voice's samples for ``[block_start, block_start + len(block))``."""
        lo = max(block_start, self.start_frame)
        hi = min(block_start + len(block), self.end_frame)
        if hi <= lo:
            return
        segment = self.clip[lo - self.start_frame:hi - self.start_frame]
        if self.release_frame is not None and hi > self.release_frame:
            frames = np.arange(lo, hi)
            gain = np.clip(1.0 - (frames - self.release_frame) / self.release_length, 0.0, 1.0)
            segment = segment * gain
        block[lo - block_start:hi - block_start] += segment


class VoiceBank:
    """
    Per-instrument synthesis voices with start/stop/release lifecycle.

    Beyond ``max_voices`` held voices the quietest one is stolen: voices past
    their gate go first, then the lowest velocity, then the oldest.

    Example:
        >>> bank = VoiceBank(sample_rate=8000)
        >>> handle = bank.trigger(InstrumentKind.LEAD, 69, 0.8, at_time=0.0, duration=0.25)
        >>> bank.active_count
        1
        >>> block = bank.render(256)
        >>> bank.release_all()
        >>> bank.active_count
        0
    """

    def __init__(self, sample_rate: int = 44100, max_voices: int = 64,
                 forced_release: float = FORCED_RELEASE_SECONDS):
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        if max_voices <= 0:
            raise ValueError(f"max_voices must be positive, got {max_voices}")
        self.sample_rate = sample_rate
        self.max_voices = max_voices
        self._forced_release_frames = max(1, int(round(forced_release * sample_rate)))
        self._voices: List[Voice] = []
        self._frame = 0
        self._next_id = 1
        self._generation = 0
        self._lock = threading.Lock()

    # ---------- Clock ----------
    @property
    def current_frame(self) -> int:
        return self._frame

    @property
    def current_time(self) -> float:
        """Seconds of audio rendered so far; the clock notes are scheduled against."""
        return self._frame / self.sample_rate

    # ---------- Voice lifecycle ----------
    def trigger(self, kind: InstrumentKind, pitch: int, velocity: float,
                at_time: float, duration: float, clip: Optional[np.ndarray] = None) -> VoiceHandle:
        """
        Schedule a note to sound at ``at_time`` and release after ``duration``.

        ``clip`` is the note already rendered by ``render_note``; without one
        the note is rendered here, before the bank is locked. Never blocks the
        audio thread beyond a short list update. A start time already in the
        past plays from the current frame.
        """
        kind = InstrumentKind.parse(kind)
        generation = self._generation
        if clip is None:
            clip = render_note(kind, pitch, velocity, duration, self.sample_rate)
        gate = len(clip) if kind is InstrumentKind.PERCUSSION else note_frames(duration, self.sample_rate)
        start = int(round(at_time * self.sample_rate))

        with self._lock:
            voice_id = self._next_id
            self._next_id += 1
            if generation != self._generation:
                # release_all() ran while this note was being rendered
                return VoiceHandle(voice_id, at_time, dropped=True)
            if start < self._frame:
                logger.warning("Late trigger: pitch %d due %.4fs, clock at %.4fs",
                               pitch, at_time, self.current_time)
                start = self._frame
            held = [v for v in self._voices if v.release_frame is None]
            if len(held) >= self.max_voices:
                self._steal(held)
            self._voices.append(Voice(voice_id, kind, pitch, velocity, clip, start, gate))
        return VoiceHandle(voice_id, start / self.sample_rate)

    def _steal(self, held: List[Voice]) -> None:
        frame = self._frame
        victim = min(held, key=lambda v: (v.is_held(frame), v.velocity, v.start_frame))
        logger.debug("Voice limit %d reached, stealing voice %d (pitch %d)",
                     self.max_voices, victim.id, victim.pitch)
        if victim.start_frame >= frame:
            self._voices.remove(victim)
        else:
            victim.force_release(frame, self._forced_release_frames)

    def release(self, handle: VoiceHandle) -> None:
        """Force a single voice into release, if it is still alive."""
        with self._lock:
            for voice in self._voices:
                if voice.id == handle.id:
                    if voice.start_frame >= self._frame:
                        self._voices.remove(voice)
                    else:
                        voice.force_release(self._frame, self._forced_release_frames)
                    return

    def release_all(self) -> None:
        """
        Force every voice into release now and drop those not yet started.

        Safe from any thread; takes effect before the next rendered block.
        """
        with self._lock:
            self._generation += 1
            frame = self._frame
            self._voices = [v for v in self._voices if v.start_frame < frame]
            for voice in self._voices:
                voice.force_release(frame, self._forced_release_frames)

    # ---------- Rendering ----------
    def render(self, frames: int) -> np.ndarray:
        """Mix every voice into the next ``frames`` samples and advance the clock."""
        if frames < 0:
            raise ValueError(f"Frame count must be non-negative, got {frames}")
        block = np.zeros(frames, dtype=np.float64)
        with self._lock:
            start = self._frame
            for voice in self._voices:
                voice.mix_into(block, start)
            self._frame = start + frames
            self._voices = [v for v in self._voices if v.end_frame > self._frame]
        return block

    # ---------- Introspection ----------
    @property
    def active_count(self) -> int:
        """Voices scheduled or held, not yet in any release phase."""
        with self._lock:
            return sum(1 for v in self._voices if v.is_held(self._frame))

    @property
    def voice_count(self) -> int:
        """Every voice still producing samples, release tails included."""
        with self._lock:
            return len(self._voices)
