"""Composition module: data model, time model, scheduling and mixing."""

from .model import (
    InstrumentKind,
    NoteEvent,
    Track,
    Composition,
    note_to_midi,
    midi_to_frequency,
    iter_notes,
)
from .timing import (
    beat_duration,
    parse_position,
    parse_duration,
    position_to_beats,
    duration_to_beats,
    position_to_seconds,
    duration_to_seconds,
)
from .sequencer import ScheduledNote, build_schedule, schedule_length
from .mixing import normalize_peak, to_channels

__all__ = [
    # Data model
    'InstrumentKind',
    'NoteEvent',
    'Track',
    'Composition',
    'note_to_midi',
    'midi_to_frequency',
    'iter_notes',

    # Time model
    'beat_duration',
    'parse_position',
    'parse_duration',
    'position_to_beats',
    'duration_to_beats',
    'position_to_seconds',
    'duration_to_seconds',

    # Scheduling
    'ScheduledNote',
    'build_schedule',
    'schedule_length',

    # Mixing
    'normalize_peak',
    'to_channels',
]
