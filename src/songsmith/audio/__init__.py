"""Audio generation module: oscillators, noise, drums, recipes and voices."""

from .oscillators import (
    generate_sine,
    generate_sawtooth,
    generate_square
)

from .noise import (
    generate_white_noise,
    generate_pink_noise,
)

from .drums import (
    synthesize_kick,
    synthesize_snare,
    synthesize_hihat,
)

from .recipes import Recipe, RECIPES, MAX_RELEASE_SECONDS, CLIP_CACHE, ClipCache, render_note
from .voices import Voice, VoiceBank, VoiceHandle
from .output import AudioOutput

__all__ = [
    # Oscillators
    "generate_sine",
    "generate_sawtooth",
    "generate_square",
    
    # Noise generators
    "generate_white_noise",
    "generate_pink_noise",
    
    # Drum synthesizers
    "synthesize_kick",
    "synthesize_snare",
    "synthesize_hihat",

    # Instruments
    "Recipe",
    "RECIPES",
    "MAX_RELEASE_SECONDS",
    "render_note",
    "ClipCache",
    "CLIP_CACHE",
    "Voice",
    "VoiceBank",
    "VoiceHandle",
    "AudioOutput",
]
