"""Export module: offline rendering, WAV and MIDI encoding."""

from .offline import OfflineRenderer, render_composition
from .wav import encode_wav, wav_header
from .midi import (
    MIDI_VOICES,
    MidiNote,
    MidiVoice,
    encode_midi,
    decode_midi,
)

__all__ = [
    # Offline rendering
    "OfflineRenderer",
    "render_composition",

    # WAV
    "encode_wav",
    "wav_header",

    # MIDI
    "MIDI_VOICES",
    "MidiNote",
    "MidiVoice",
    "encode_midi",
    "decode_midi",
]
