"""Live playback: analyser, lookahead transport and the engine context."""

from .analyser import Analyser, AudioAnalysis
from .transport import Transport, TransportState
from .engine import Engine, export_filename

__all__ = [
    # Analysis
    "Analyser",
    "AudioAnalysis",

    # Scheduling
    "Transport",
    "TransportState",

    # Engine context
    "Engine",
    "export_filename",
]
