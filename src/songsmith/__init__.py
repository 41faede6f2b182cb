"""
songsmith: playback and export engine for generated compositions.

Loads a symbolic composition (tracks of timed note events), plays it in real
time with lookahead scheduling, and exports it as WAV audio or a MIDI file.
"""

from .composition import Composition, InstrumentKind, NoteEvent, Track
from .config import AnalyserConfig, AudioConfig, EngineConfig, ExportConfig, TransportConfig
from .errors import (
    AudioInitError,
    ExportError,
    InvalidComposition,
    MalformedTimeToken,
    PitchOutOfRange,
    SongsmithError,
    ValidationError,
)
from .export import decode_midi, encode_midi, encode_wav, render_composition
from .playback import Engine, export_filename

__version__ = "0.1.0"

__all__ = [
    # Data model
    "Composition",
    "InstrumentKind",
    "NoteEvent",
    "Track",

    # Configuration
    "AnalyserConfig",
    "AudioConfig",
    "EngineConfig",
    "ExportConfig",
    "TransportConfig",

    # Errors
    "AudioInitError",
    "ExportError",
    "InvalidComposition",
    "MalformedTimeToken",
    "PitchOutOfRange",
    "SongsmithError",
    "ValidationError",

    # Engine and exports
    "Engine",
    "export_filename",
    "render_composition",
    "encode_wav",
    "encode_midi",
    "decode_midi",
]
