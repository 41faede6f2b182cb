"""
Engine context: the one object that owns live audio.

It ties a voice bank, an analyser and a transport to a device output stream,
and exposes the export operations. Nothing outlives ``shutdown()``; the only
module-level state is the clip cache, which shutdown empties.
"""

import logging
import re
import time
from typing import Callable, Optional

import numpy as np

from ..audio.output import AudioOutput
from ..audio.recipes import CLIP_CACHE
from ..audio.voices import VoiceBank
from ..composition.mixing import to_channels
from ..composition.model import Composition
from ..config import EngineConfig
from ..errors import AudioInitError, ExportError, SongsmithError
from ..export.midi import encode_midi
from ..export.offline import OfflineRenderer
from ..export.wav import encode_wav
from .analyser import Analyser, AudioAnalysis
from .transport import Transport, TransportState

logger = logging.getLogger(__name__)


def export_filename(composition: Composition, extension: str, timestamp: Optional[int] = None) -> str:
    """
    Download name for an export: title with whitespace runs as ``_``, plus a millisecond stamp.

    Example:
        >>> comp = Composition(title="Night  Drive", tempo=100)
        >>> export_filename(comp, "mid", timestamp=1700000000000)
        'Night_Drive_1700000000000.mid'
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    stem = re.sub(r"\s+", "_", composition.title.strip()) or "composition"
    return f"{stem}_{timestamp}.{extension.lstrip('.')}"


class Engine:
    """
    Playback and export engine.

    Call ``initialize()`` once audio may start (it opens the output stream),
    then ``load`` / ``play`` / ``stop``. Exports work without initialisation
    and run on independent state, so they can overlap with live playback.

    Example:
        with Engine() as engine:
            engine.load(composition)
            engine.play()
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 output_factory: Callable[..., AudioOutput] = AudioOutput):
        self.config = config or EngineConfig()
        audio = self.config.audio
        self.voices = VoiceBank(sample_rate=audio.sample_rate, max_voices=audio.max_voices)
        self.analyser = Analyser(
            size=self.config.analyser.size,
            smoothing=self.config.analyser.smoothing,
            min_db=self.config.analyser.min_db,
            max_db=self.config.analyser.max_db,
        )
        self.transport = Transport(
            self.voices,
            lookahead=self.config.transport.lookahead,
            interval=self.config.transport.interval,
            start_delay=self.config.transport.start_delay,
            render_ahead=self.config.transport.render_ahead,
        )
        self._output_factory = output_factory
        self._output: Optional[AudioOutput] = None

    # ---------- Lifecycle ----------
    @property
    def initialized(self) -> bool:
        return self._output is not None

    def initialize(self) -> None:
        """
        Open the audio output. Idempotent.

        Raises AudioInitError once on failure without retrying; playback
        controls stay unavailable until a later call succeeds.
        """
        if self._output is not None:
            return
        audio = self.config.audio
        output = self._output_factory(
            self._pull,
            sample_rate=audio.sample_rate,
            channels=audio.channels,
            block_size=audio.block_size,
            device=audio.device,
        )
        try:
            output.start()
        except AudioInitError:
            logger.error("Audio output could not be started")
            raise
        self._output = output

    def shutdown(self) -> None:
        """Stop playback, close the output stream and drop cached clips."""
        self.transport.stop()
        output, self._output = self._output, None
        if output is not None:
            output.close()
        self.analyser.reset()
        CLIP_CACHE.clear()

    def __enter__(self) -> "Engine":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _pull(self, frames: int) -> np.ndarray:
        """Audio-thread callback: render the next block and feed the analyser."""
        block = self.voices.render(frames)
        self.analyser.push(block)
        return block

    def _require_output(self) -> None:
        if self._output is None:
            raise AudioInitError("audio output is not initialized")

    # ---------- Playback ----------
    @property
    def state(self) -> TransportState:
        return self.transport.state

    @property
    def is_playing(self) -> bool:
        return self.transport.is_playing

    def load(self, composition: Composition) -> None:
        """Make ``composition`` the active one, cancelling live playback."""
        self.transport.load(composition)

    def play(self) -> bool:
        self._require_output()
        return self.transport.play()

    def stop(self) -> None:
        self.transport.stop()

    def toggle(self) -> bool:
        self._require_output()
        return self.transport.toggle()

    def analysis(self) -> AudioAnalysis:
        """Refresh and return the analyser snapshot; call once per animation frame."""
        return self.analyser.refresh()

    # ---------- Export ----------
    def render(self, composition: Composition) -> np.ndarray:
        """Offline-render ``composition`` to a mono buffer at the engine's sample rate."""
        renderer = OfflineRenderer(
            sample_rate=self.config.audio.sample_rate,
            block_size=self.config.export.block_size,
            tail_seconds=self.config.export.tail_seconds,
        )
        return renderer.render(composition)

    def export_wav(self, composition: Composition) -> bytes:
        try:
            samples = self.render(composition)
            samples = to_channels(samples, self.config.audio.channels)
            data = encode_wav(samples, self.config.audio.sample_rate)
        except ExportError:
            logger.exception("WAV export of %r failed", composition.title)
            raise
        except (SongsmithError, ValueError, MemoryError) as e:
            logger.exception("WAV export of %r failed", composition.title)
            raise ExportError(f"WAV export failed: {e}") from e
        logger.info("Exported WAV for %r (%d bytes)", composition.title, len(data))
        return data

    def export_midi(self, composition: Composition) -> bytes:
        try:
            data = encode_midi(composition, ticks_per_beat=self.config.export.ticks_per_beat,
                               program_changes=self.config.export.program_changes)
        except ExportError:
            logger.exception("MIDI export of %r failed", composition.title)
            raise
        except (SongsmithError, ValueError) as e:
            logger.exception("MIDI export of %r failed", composition.title)
            raise ExportError(f"MIDI export failed: {e}") from e
        logger.info("Exported MIDI for %r (%d bytes)", composition.title, len(data))
        return data
