"""
Schedule building for playback and offline rendering.

Both the live transport and the offline renderer walk the same schedule, so
they agree on every note's start and length to the sample.
"""

from dataclasses import dataclass
from typing import List

from .model import Composition, InstrumentKind, iter_notes


@dataclass(frozen=True)
class ScheduledNote:
    """
    One note resolved to absolute time.

    Times are seconds from the top of the piece; ``order`` is the authoring
    position across all tracks and breaks ties between equal start times.
    """
    order: int
    track_index: int
    instrument: InstrumentKind
    pitch: int
    velocity: float
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration


def build_schedule(composition: Composition) -> List[ScheduledNote]:
    """
    Resolve every note of every track to seconds, sorted by start time.

    Example:
        >>> comp = Composition.from_dict({"bpm": 120, "tracks": [{"instrument": "lead",
        ...     "notes": [{"note": "A4", "duration": "4n", "time": "0:1:0"}]}]})
        >>> [(n.pitch, n.start, n.duration) for n in build_schedule(comp)]
        [(69, 0.5, 0.5)]
    """
    tempo = composition.tempo
    schedule = [
        ScheduledNote(
            order=order,
            track_index=track_index,
            instrument=track.instrument,
            pitch=note.midi_pitch,
            velocity=note.velocity,
            start=note.start_seconds(tempo),
            duration=note.duration_seconds(tempo),
        )
        for order, (track_index, track, note) in enumerate(iter_notes(composition))
    ]
    schedule.sort(key=lambda n: (n.start, n.order))
    return schedule


def schedule_length(schedule: List[ScheduledNote]) -> float:
    """Latest note end in seconds, 0.0 for an empty schedule."""
    return max((n.end for n in schedule), default=0.0)
