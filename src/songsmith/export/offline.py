"""
Offline rendering of a whole composition to a sample buffer.

Uses the same recipes as the live voice bank, so an export sounds like
playback, but shares no state with it and can run while something is playing.
"""

import logging
import math
from typing import List

import numpy as np

from ..audio.recipes import MAX_RELEASE_SECONDS, render_note
from ..audio.voices import Voice
from ..composition.mixing import normalize_peak
from ..composition.model import Composition
from ..composition.sequencer import ScheduledNote, build_schedule, schedule_length

logger = logging.getLogger(__name__)


class OfflineRenderer:
    """
    Block-based renderer for exports.

    Args:
        sample_rate: Output sample rate in Hz
        block_size: Frames processed per block
        tail_seconds: Silence allowance after the last note for release
            tails; never shorter than the longest recipe release

    Example:
        >>> comp = Composition(title="Empty", tempo=120)
        >>> len(OfflineRenderer(sample_rate=8000).render(comp))
        8000
    """

    def __init__(self, sample_rate: int = 44100, block_size: int = 512, tail_seconds: float = 1.0):
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        if block_size <= 0:
            raise ValueError(f"Block size must be positive, got {block_size}")
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.tail_seconds = max(float(tail_seconds), MAX_RELEASE_SECONDS)

    def total_frames(self, schedule: List[ScheduledNote]) -> int:
        return int(math.ceil((schedule_length(schedule) + self.tail_seconds) * self.sample_rate))

    def render(self, composition: Composition) -> np.ndarray:
        """
        Render ``composition`` to a mono float64 buffer.

        The buffer spans the schedule plus the tail and is scaled down only
        when its absolute peak exceeds 1.0.
        """
        sr = self.sample_rate
        schedule = build_schedule(composition)
        total = self.total_frames(schedule)
        out = np.zeros(total, dtype=np.float64)

        starts = [int(round(note.start * sr)) for note in schedule]

        voices: List[Voice] = []
        cursor = 0
        for block_start in range(0, total, self.block_size):
            block_end = min(block_start + self.block_size, total)
            # notes starting by the end of this block join the mix
            while cursor < len(schedule) and starts[cursor] <= block_end:
                note = schedule[cursor]
                clip = render_note(note.instrument, note.pitch, note.velocity, note.duration, sr)
                voices.append(Voice(cursor, note.instrument, note.pitch, note.velocity, clip,
                                    starts[cursor], len(clip)))
                cursor += 1
            block = out[block_start:block_end]
            for voice in voices:
                voice.mix_into(block, block_start)
            # finished once the release tail has passed
            voices = [v for v in voices if v.end_frame > block_end]

        peak = float(np.max(np.abs(out))) if total else 0.0
        if peak > 1.0:
            logger.info("Render of %r peaked at %.3f, normalising", composition.title, peak)
        out = normalize_peak(out)
        logger.info("Rendered %r: %d notes, %.2fs", composition.title, len(schedule), total / sr)
        return out


def render_composition(composition: Composition, sample_rate: int = 44100,
                       tail_seconds: float = 1.0) -> np.ndarray:
    """Convenience wrapper around :class:`OfflineRenderer`."""
    return OfflineRenderer(sample_rate=sample_rate, tail_seconds=tail_seconds).render(composition)
