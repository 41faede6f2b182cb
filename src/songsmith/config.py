"""Engine configuration."""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class AudioConfig:
    sample_rate: int = 44100
    channels: int = 1
    block_size: int = 512
    max_voices: int = 64          # polyphony ceiling, quietest voice is stolen beyond it
    device: Optional[Union[int, str]] = None

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.channels not in (1, 2):
            raise ValueError(f"Channels must be 1 or 2, got {self.channels}")
        if self.block_size <= 0:
            raise ValueError(f"Block size must be positive, got {self.block_size}")
        if self.max_voices <= 0:
            raise ValueError(f"max_voices must be positive, got {self.max_voices}")


@dataclass
class TransportConfig:
    lookahead: float = 0.1        # seconds scanned ahead of the clock
    interval: float = 0.025       # seconds between scans
    start_delay: float = 0.05     # offset of the first beat from play()
    render_ahead: float = 2.0     # seconds of notes rendered before they fall due

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError(f"Interval must be positive, got {self.interval}")
        if self.lookahead < self.interval:
            raise ValueError("Lookahead must be at least one polling interval")
        if self.start_delay < 0:
            raise ValueError(f"start_delay must be non-negative, got {self.start_delay}")
        if self.render_ahead < self.lookahead:
            raise ValueError("render_ahead must cover at least the lookahead")


@dataclass
class AnalyserConfig:
    size: int = 1024
    smoothing: float = 0.8
    min_db: float = -100.0
    max_db: float = -30.0

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"Analyser size must be positive, got {self.size}")
        if not (0.0 <= self.smoothing < 1.0):
            raise ValueError(f"Smoothing must be in [0, 1), got {self.smoothing}")
        if self.min_db >= self.max_db:
            raise ValueError("min_db must be below max_db")


@dataclass
class ExportConfig:
    tail_seconds: float = 1.0     # allowance for release decay after the last note
    block_size: int = 512
    ticks_per_beat: int = 480
    program_changes: bool = False  # prefix melodic MIDI tracks with their GM program

    def __post_init__(self):
        if self.tail_seconds < 0:
            raise ValueError(f"tail_seconds must be non-negative, got {self.tail_seconds}")
        if self.block_size <= 0:
            raise ValueError(f"Block size must be positive, got {self.block_size}")
        if not (0 < self.ticks_per_beat < 0x8000):
            raise ValueError(f"ticks_per_beat must be in 1..32767, got {self.ticks_per_beat}")


@dataclass
class EngineConfig:
    audio: AudioConfig = field(default_factory=AudioConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    analyser: AnalyserConfig = field(default_factory=AnalyserConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
