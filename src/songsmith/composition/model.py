"""
Composition data model.

A Composition is the symbolic description produced by the generator: tempo,
scale, and a list of instrument tracks holding timed note events. Everything
is validated at construction, so a Composition that exists is playable and
exportable. Loading from a mapping is all-or-nothing.
"""

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ..errors import InvalidComposition, PitchOutOfRange, ValidationError
from . import timing

_NOTE_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")
_NOTE_OFFSETS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


class InstrumentKind(Enum):
    """Closed set of instrument families; each maps to one synthesis recipe."""

    LEAD = "lead"
    BASS = "bass"
    PERCUSSION = "percussion"
    PAD = "pad"

    @classmethod
    def parse(cls, name: Any) -> "InstrumentKind":
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise InvalidComposition(f"instrument must be a string, got {name!r}")
        key = name.strip().lower()
        key = _INSTRUMENT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise InvalidComposition(f"unknown instrument {name!r} (expected one of {choices})") from None


# Names used by the composition generator
_INSTRUMENT_ALIASES = {"synth": "lead", "drums": "percussion"}


def note_to_midi(name: str) -> int:
    """
    Convert a note name such as ``C4``, ``F#3`` or ``Bb-1`` to a MIDI note number.

    ``C4`` is middle C (60) and ``A4`` is 69.

    Raises:
        PitchOutOfRange: if the name is malformed or lands outside 0..127.

    Example:
        >>> note_to_midi("A4")
        69
        >>> note_to_midi("C#5")
        73
    """
    if not isinstance(name, str):
        raise PitchOutOfRange(f"note name must be a string, got {name!r}")
    match = _NOTE_RE.match(name.strip())
    if match is None:
        raise PitchOutOfRange(f"cannot parse note name {name!r}")
    letter, accidental, octave = match.groups()
    semitone = _NOTE_OFFSETS[letter.upper()] + {"#": 1, "b": -1, "": 0}[accidental]
    midi = (int(octave) + 1) * 12 + semitone
    if not (0 <= midi <= 127):
        raise PitchOutOfRange(f"{name!r} resolves to {midi}, outside 0..127")
    return midi


def midi_to_frequency(midi: int) -> float:
    """Equal-tempered frequency in Hz, A4 = 440."""
    return 440.0 * (2 ** ((midi - 69) / 12.0))


@dataclass(frozen=True)
class NoteEvent:
    pitch: str
    duration: str
    start_time: str
    velocity: float = 0.8
    midi_pitch: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            midi = note_to_midi(self.pitch)
        except ValidationError as e:
            raise e.at("pitch") from None
        try:
            timing.parse_duration(self.duration)
        except ValidationError as e:
            raise e.at("duration") from None
        try:
            timing.parse_position(self.start_time)
        except ValidationError as e:
            raise e.at("start_time") from None
        velocity = self.velocity
        if isinstance(velocity, bool) or not isinstance(velocity, (int, float)) or not math.isfinite(velocity):
            raise InvalidComposition(f"velocity must be a finite number, got {velocity!r}", "velocity")
        object.__setattr__(self, "velocity", min(1.0, max(0.0, float(velocity))))
        object.__setattr__(self, "midi_pitch", midi)

    def start_seconds(self, tempo: float) -> float:
        return timing.position_to_seconds(self.start_time, tempo)

    def duration_seconds(self, tempo: float) -> float:
        return timing.duration_to_seconds(self.duration, tempo)


@dataclass(frozen=True)
class Track:
    name: str
    instrument: InstrumentKind
    notes: Tuple[NoteEvent, ...] = ()
    color: str = ""  # presentation only

    def __post_init__(self):
        object.__setattr__(self, "instrument", InstrumentKind.parse(self.instrument))
        object.__setattr__(self, "notes", tuple(self.notes))
        for i, note in enumerate(self.notes):
            if not isinstance(note, NoteEvent):
                raise InvalidComposition(f"expected a NoteEvent, got {type(note).__name__}", f"notes[{i}]")


@dataclass(frozen=True)
class Composition:
    title: str
    tempo: float
    scale: str = ""
    mood: str = ""
    tracks: Tuple[Track, ...] = ()
    description: str = ""

    def __post_init__(self):
        tempo = self.tempo
        if isinstance(tempo, bool) or not isinstance(tempo, (int, float)) or not math.isfinite(tempo) or tempo <= 0:
            raise InvalidComposition(f"tempo must be a positive number, got {tempo!r}", "tempo")
        object.__setattr__(self, "tempo", float(tempo))
        object.__setattr__(self, "tracks", tuple(self.tracks))
        for i, track in enumerate(self.tracks):
            if not isinstance(track, Track):
                raise InvalidComposition(f"expected a Track, got {type(track).__name__}", f"tracks[{i}]")

    @property
    def note_count(self) -> int:
        return sum(len(t.notes) for t in self.tracks)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Composition":
        """
        Build a Composition from the generator's JSON shape.

        Accepts ``bpm`` or ``tempo`` for the tempo and the generator's
        instrument names (``synth``, ``drums``). Any failure raises the matching
        validation error with the dotted path of the offending field; nothing
        is partially built.
        """
        if not isinstance(data, Mapping):
            raise InvalidComposition(f"composition must be an object, got {type(data).__name__}")
        if "bpm" in data:
            tempo, tempo_key = data["bpm"], "bpm"
        elif "tempo" in data:
            tempo, tempo_key = data["tempo"], "tempo"
        else:
            raise InvalidComposition("missing required field", "bpm")

        raw_tracks = data.get("tracks", [])
        if not isinstance(raw_tracks, list):
            raise InvalidComposition("tracks must be a list", "tracks")
        tracks = [_track_from_dict(raw, i) for i, raw in enumerate(raw_tracks)]

        try:
            return cls(
                title=str(data.get("title", "")),
                tempo=tempo,
                scale=str(data.get("scale", "")),
                mood=str(data.get("mood", "")),
                tracks=tracks,
                description=str(data.get("description", "")),
            )
        except InvalidComposition as e:
            if e.field == "tempo":
                raise InvalidComposition(e.reason, tempo_key) from None
            raise

    @classmethod
    def from_json(cls, text: str) -> "Composition":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidComposition(f"invalid JSON: {e}") from None
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of :meth:`from_dict`, in the generator's field names."""
        return {
            "title": self.title,
            "bpm": self.tempo,
            "scale": self.scale,
            "mood": self.mood,
            "description": self.description,
            "tracks": [
                {
                    "name": t.name,
                    "instrument": t.instrument.value,
                    "color": t.color,
                    "notes": [
                        {"note": n.pitch, "duration": n.duration, "time": n.start_time, "velocity": n.velocity}
                        for n in t.notes
                    ],
                }
                for t in self.tracks
            ],
        }


_NOTE_KEYS = {"pitch": "note", "start_time": "time"}


def _require(raw: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in raw:
        raise InvalidComposition("missing required field", f"{path}.{key}")
    return raw[key]


def _track_from_dict(raw: Any, index: int) -> Track:
    path = f"tracks[{index}]"
    if not isinstance(raw, Mapping):
        raise InvalidComposition("track must be an object", path)
    try:
        instrument = InstrumentKind.parse(_require(raw, "instrument", path))
    except ValidationError as e:
        if e.field:
            raise
        raise e.at(f"{path}.instrument") from None
    raw_notes = raw.get("notes", [])
    if not isinstance(raw_notes, list):
        raise InvalidComposition("notes must be a list", f"{path}.notes")
    notes: List[NoteEvent] = []
    for j, raw_note in enumerate(raw_notes):
        note_path = f"{path}.notes[{j}]"
        if not isinstance(raw_note, Mapping):
            raise InvalidComposition("note must be an object", note_path)
        try:
            notes.append(NoteEvent(
                pitch=_require(raw_note, "note", note_path),
                duration=_require(raw_note, "duration", note_path),
                start_time=_require(raw_note, "time", note_path),
                velocity=raw_note.get("velocity", 0.8),
            ))
        except ValidationError as e:
            if e.field and e.field.startswith(note_path):
                raise
            # report the generator's key names
            field_name = _NOTE_KEYS.get(e.field, e.field)
            raise type(e)(e.reason, f"{note_path}.{field_name}" if field_name else note_path) from None
    return Track(
        name=str(raw.get("name", f"Track {index + 1}")),
        instrument=instrument,
        notes=notes,
        color=str(raw.get("color", "")),
    )


def iter_notes(composition: Composition) -> Iterable[Tuple[int, Track, NoteEvent]]:
    """Yield ``(track_index, track, note)`` in authoring order."""
    for i, track in enumerate(composition.tracks):
        for note in track.notes:
            yield i, track, note
