"""
Standard MIDI File encoding.

Writes format 1 files with mido: a tempo track followed by one track per
composition track. Times come straight from the symbolic tokens as beats, so
tick positions are exact multiples of the division and never drift with tempo.
``decode_midi`` reads a file back with mido.
"""

import io
import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Tuple

import mido

from ..composition import timing
from ..composition.model import Composition, InstrumentKind, Track
from ..errors import ExportError

logger = logging.getLogger(__name__)


class MidiVoice(NamedTuple):
    channel: int
    program: int  # General MIDI program, 0-based


# Channel 9 is the General MIDI drum channel; its program is ignored
MIDI_VOICES: Dict[InstrumentKind, MidiVoice] = {
    InstrumentKind.LEAD: MidiVoice(0, 81),        # Lead 2 (sawtooth)
    InstrumentKind.BASS: MidiVoice(1, 38),        # Synth Bass 1
    InstrumentKind.PAD: MidiVoice(2, 89),         # Pad 2 (warm)
    InstrumentKind.PERCUSSION: MidiVoice(9, 0),
}


def _check_midi_voices() -> None:
    missing = set(InstrumentKind) - set(MIDI_VOICES)
    if missing:
        raise RuntimeError(f"No MIDI channel mapping for {sorted(k.value for k in missing)}")


_check_midi_voices()

# Largest delta time a four-byte variable-length quantity can hold
MAX_DELTA_TICKS = 0x0FFFFFFF
_MAX_TEMPO_US = 0xFFFFFF


@dataclass(frozen=True)
class MidiNote:
    """One decoded note; ticks are absolute within its track."""
    pitch: int
    velocity: int
    start_tick: int
    duration_ticks: int
    channel: int = 0


def midi_velocity(velocity: float) -> int:
    """Scale a 0..1 velocity to 1..127; 0 would read as a note-off."""
    return max(1, min(127, int(round(velocity * 127))))


def tempo_to_microseconds(tempo: float) -> int:
    us = int(round(60_000_000 / tempo))
    if not (0 < us <= _MAX_TEMPO_US):
        raise ExportError(f"Tempo {tempo} BPM cannot be written as a MIDI tempo")
    return us


def _tempo_track(tempo: float) -> mido.MidiTrack:
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("set_tempo", tempo=tempo_to_microseconds(tempo), time=0))
    track.append(mido.MetaMessage("end_of_track", time=0))
    return track


def _note_events(track: Track, channel: int, ticks_per_beat: int) -> List[Tuple[int, int, int, mido.Message]]:
    """``(tick, kind, order, message)`` with note-offs (kind 0) before note-ons at equal ticks."""
    events = []
    for order, note in enumerate(track.notes):
        start = int(round(timing.position_to_beats(note.start_time) * ticks_per_beat))
        length = max(1, int(round(timing.duration_to_beats(note.duration) * ticks_per_beat)))
        pitch = note.midi_pitch
        events.append((start, 1, order, mido.Message(
            "note_on", channel=channel, note=pitch, velocity=midi_velocity(note.velocity))))
        events.append((start + length, 0, order, mido.Message(
            "note_off", channel=channel, note=pitch, velocity=0)))
    events.sort(key=lambda e: e[:3])
    return events


def _instrument_track(track: Track, ticks_per_beat: int, program_changes: bool) -> mido.MidiTrack:
    voice = MIDI_VOICES[track.instrument]
    out = mido.MidiTrack()
    if program_changes and track.instrument is not InstrumentKind.PERCUSSION:
        out.append(mido.Message("program_change", channel=voice.channel, program=voice.program, time=0))
    previous = 0
    for tick, _, _, message in _note_events(track, voice.channel, ticks_per_beat):
        delta = tick - previous
        if delta > MAX_DELTA_TICKS:
            raise ExportError(f"Gap of {delta} ticks in track {track.name!r} is too long for MIDI")
        out.append(message.copy(time=delta))
        previous = tick
    out.append(mido.MetaMessage("end_of_track", time=0))
    return out


def encode_midi(composition: Composition, ticks_per_beat: int = 480,
                program_changes: bool = False) -> bytes:
    """
    Encode a composition as a format 1 Standard MIDI File.

    Args:
        composition: The composition to export
        ticks_per_beat: Division written to the header (1-32767)
        program_changes: Prefix each melodic track with a program change
            selecting its General MIDI instrument

    Returns:
        bytes: Header chunk, tempo track, then one chunk per composition track

    Example:
        >>> data = encode_midi(Composition(title="Empty", tempo=120))
        >>> data[:4], len(data)
        (b'MThd', 33)
    """
    if not (0 < ticks_per_beat < 0x8000):
        raise ExportError(f"ticks_per_beat must be in 1..32767, got {ticks_per_beat}")
    midi = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    midi.tracks.append(_tempo_track(composition.tempo))
    try:
        for track in composition.tracks:
            midi.tracks.append(_instrument_track(track, ticks_per_beat, program_changes))
    except (TypeError, ValueError) as e:
        raise ExportError(f"Cannot encode MIDI: {e}") from e

    buffer = io.BytesIO()
    midi.save(file=buffer)
    data = buffer.getvalue()
    logger.debug("Encoded %d MIDI tracks, %d bytes", len(midi.tracks), len(data))
    return data


def decode_midi(data: bytes) -> List[List[MidiNote]]:
    """
    Read a MIDI file back into notes, one list per track chunk.

    Note-ons are paired with the next note-off of the same channel and pitch
    in first-in first-out order. Index 0 of an exported file is the tempo
    track and is always empty.
    """
    try:
        midi = mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError) as e:
        raise ExportError(f"Unreadable MIDI data: {e}") from e

    tracks: List[List[MidiNote]] = []
    for track in midi.tracks:
        notes: List[MidiNote] = []
        open_notes: Dict[Tuple[int, int], List[Tuple[int, int, int]]] = {}
        tick = 0
        for msg in track:
            tick += msg.time
            if msg.type == "note_on" and msg.velocity > 0:
                key = (msg.channel, msg.note)
                open_notes.setdefault(key, []).append((tick, msg.velocity, len(notes)))
                notes.append(None)
            elif msg.type == "note_off" or msg.type == "note_on":
                pending = open_notes.get((msg.channel, msg.note))
                if pending:
                    start, velocity, slot = pending.pop(0)
                    notes[slot] = MidiNote(msg.note, velocity, start, tick - start, msg.channel)
        # note-ons never closed are dropped
        tracks.append([n for n in notes if n is not None])
    return tracks
