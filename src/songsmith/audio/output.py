"""
Real-time audio output through PortAudio (sounddevice).

The stream's callback pulls mono blocks from a callable and writes them to
the device. It never raises into PortAudio: a failing pull produces silence
and is logged.
"""

import logging
from typing import Callable, Optional, Union

import numpy as np

from ..composition.mixing import to_channels
from ..errors import AudioInitError

logger = logging.getLogger(__name__)

# A failure streak is reported on its first block and then once per this many
FAILURE_LOG_EVERY = 100


class AudioOutput:
    """
    Owns one ``sounddevice.OutputStream``.

    Args:
        pull: Called from the audio thread with a frame count; returns a mono block
        sample_rate: Stream sample rate in Hz
        channels: Output channels; mono blocks are duplicated across them
        block_size: Frames per callback
        device: PortAudio device index or name (default device when None)
    """

    def __init__(self, pull: Callable[[int], np.ndarray], sample_rate: int = 44100, channels: int = 1,
                 block_size: int = 512, device: Optional[Union[int, str]] = None):
        self._pull = pull
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.block_size = int(block_size)
        self.device = device
        self._stream = None
        self._failures = 0

    def _callback(self, outdata, frames, time_info, status):
        if status:
            logger.debug("Output stream status: %s", status)
        try:
            block = self._pull(frames)
            outdata[:] = to_channels(block, self.channels)
        except Exception:
            # exceptions must not escape into PortAudio
            outdata[:] = 0
            self._failures += 1
            if self._failures == 1:
                logger.exception("Audio callback failed; writing silence")
            elif self._failures % FAILURE_LOG_EVERY == 0:
                logger.error("Audio callback still failing (%d blocks in a row)", self._failures)
            return
        if self._failures:
            logger.warning("Audio callback recovered after %d failed blocks", self._failures)
            self._failures = 0

    def start(self) -> None:
        """Open and start the stream. Raises AudioInitError on failure."""
        if self._stream is not None:
            return
        self._failures = 0
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            # OSError: the PortAudio library itself could not be loaded
            raise AudioInitError(f"sounddevice is unavailable: {e}") from e

        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.block_size,
                device=self.device,
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError, OSError) as e:
            raise AudioInitError(f"could not open audio output: {e}") from e
        self._stream = stream
        logger.info("Audio output started (%d Hz, %d ch, block %d)",
                    self.sample_rate, self.channels, self.block_size)

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        import sounddevice as sd
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            logger.warning("Error while closing audio output: %s", e)
