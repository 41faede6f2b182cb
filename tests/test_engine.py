"""
Tests for the engine context, with a fake output stream in place of PortAudio.
"""

import struct

import numpy as np
import pytest

from songsmith.audio import CLIP_CACHE
from songsmith.config import AudioConfig, EngineConfig, TransportConfig
from songsmith.errors import AudioInitError, ExportError
from songsmith.playback import Engine, TransportState, export_filename
from songsmith.composition import Composition

SR = 8000


class FakeOutput:
    """Stands in for AudioOutput; the test pulls blocks by hand."""

    fail = False

    def __init__(self, pull, sample_rate, channels, block_size, device):
        self.pull = pull
        self.block_size = block_size
        self.started = False
        self.closed = False

    def start(self):
        if self.fail:
            raise AudioInitError("no device")
        self.started = True

    def close(self):
        self.closed = True

    def run(self, blocks):
        return np.concatenate([self.pull(self.block_size) for _ in range(blocks)])


class FailingOutput(FakeOutput):
    fail = True


def _engine(factory=FakeOutput):
    config = EngineConfig(audio=AudioConfig(sample_rate=SR, block_size=200),
                          transport=TransportConfig(start_delay=0.0))
    engine = Engine(config, output_factory=factory)
    engine.transport.threaded = False
    return engine


class TestLifecycle:

    def test_initialize_opens_the_output_once(self):
        engine = _engine()
        engine.initialize()
        output = engine._output
        engine.initialize()
        assert engine._output is output
        assert output.started

    def test_failed_initialize_disables_playback(self, single_a4):
        engine = _engine(FailingOutput)
        with pytest.raises(AudioInitError):
            engine.initialize()
        assert not engine.initialized
        engine.load(single_a4)
        with pytest.raises(AudioInitError):
            engine.play()
        with pytest.raises(AudioInitError):
            engine.toggle()
        assert engine.state is TransportState.STOPPED

    def test_initialize_can_be_retried(self, single_a4):
        engine = _engine(FailingOutput)
        with pytest.raises(AudioInitError):
            engine.initialize()
        engine._output_factory = FakeOutput
        engine.initialize()
        engine.load(single_a4)
        assert engine.play() is True

    def test_context_manager_shuts_down(self, single_a4):
        with _engine() as engine:
            output = engine._output
            engine.load(single_a4)
            engine.play()
        assert output.closed
        assert not engine.initialized
        assert engine.state is TransportState.STOPPED

    def test_shutdown_empties_the_clip_cache(self, single_a4):
        engine = _engine()
        engine.initialize()
        engine.export_wav(single_a4)
        assert len(CLIP_CACHE) > 0
        engine.shutdown()
        assert len(CLIP_CACHE) == 0 and CLIP_CACHE.nbytes == 0


class TestPlayback:

    def test_pull_feeds_the_analyser(self, single_a4):
        engine = _engine()
        engine.initialize()
        assert not engine.analysis().spectrum.any()
        engine.load(single_a4)
        engine.play()
        audio = engine._output.run(4)
        assert audio.any()
        snap = engine.analysis()
        assert len(snap.waveform) == 1024 and snap.waveform.any()

    def test_stop_silences(self, band):
        engine = _engine()
        engine.initialize()
        engine.load(band)
        engine.play()
        engine._output.run(4)
        engine.stop()
        assert engine.voices.active_count == 0
        engine._output.run(2)
        assert not engine._output.run(1).any()

    def test_toggle(self, single_a4):
        engine = _engine()
        engine.initialize()
        engine.load(single_a4)
        assert engine.toggle() is True
        assert engine.is_playing
        assert engine.toggle() is False


class TestExports:

    def test_export_wav(self, single_a4):
        data = _engine().export_wav(single_a4)
        assert data[:4] == b"RIFF"
        assert len(data) == 44 + int(np.ceil(1.5 * SR)) * 2

    def test_export_wav_follows_the_channel_count(self, single_a4):
        config = EngineConfig(audio=AudioConfig(sample_rate=SR, channels=2))
        data = Engine(config, output_factory=FakeOutput).export_wav(single_a4)
        frames = int(np.ceil(1.5 * SR))
        assert struct.unpack("<H", data[22:24]) == (2,)
        assert len(data) == 44 + frames * 2 * 2
        pcm = np.frombuffer(data[44:], dtype="<i2").reshape(-1, 2)
        np.testing.assert_array_equal(pcm[:, 0], pcm[:, 1])

    def test_export_midi(self, single_a4):
        assert _engine().export_midi(single_a4)[:4] == b"MThd"

    def test_exports_work_without_audio(self, band):
        engine = _engine(FailingOutput)
        assert engine.export_wav(band)
        assert engine.export_midi(band)

    def test_failed_export_leaves_playback_alone(self, single_a4):
        engine = _engine()
        engine.initialize()
        engine.load(single_a4)
        engine.play()
        slow = Composition(title="Glacial", tempo=1.0)
        with pytest.raises(ExportError):
            engine.export_midi(slow)
        assert engine.is_playing
        assert engine.transport.composition is single_a4

    def test_render_failures_become_export_errors(self, single_a4, monkeypatch):
        engine = _engine()

        def broken(samples, sample_rate):
            raise ValueError("boom")

        monkeypatch.setattr("songsmith.playback.engine.encode_wav", broken)
        with pytest.raises(ExportError):
            engine.export_wav(single_a4)


class TestExportFilename:

    def test_whitespace_runs(self):
        comp = Composition(title="  Night   Drive\tHome ", tempo=100)
        assert export_filename(comp, "wav", timestamp=123) == "Night_Drive_Home_123.wav"

    def test_extension_dot_is_optional(self):
        comp = Composition(title="Song", tempo=100)
        assert export_filename(comp, ".mid", timestamp=5) == "Song_5.mid"

    def test_default_timestamp_is_milliseconds(self):
        name = export_filename(Composition(title="Song", tempo=100), "mid")
        stamp = int(name[len("Song_"):-len(".mid")])
        assert stamp > 1_600_000_000_000

    def test_untitled(self):
        assert export_filename(Composition(title="", tempo=100), "mid", timestamp=1) == "composition_1.mid"
