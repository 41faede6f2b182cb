"""
Tests for the live signal analyser.
"""

import numpy as np
import pytest

from songsmith.playback import Analyser


class TestAnalyser:

    def test_silent_before_any_signal(self):
        analyser = Analyser()
        snap = analyser.snapshot()
        assert snap.waveform.shape == (1024,)
        assert snap.spectrum.shape == (1024,)
        assert snap.waveform.dtype == np.float32
        assert snap.spectrum.dtype == np.uint8
        assert not snap.waveform.any() and not snap.spectrum.any()

    def test_refresh_of_silence_stays_silent(self):
        analyser = Analyser(size=256)
        analyser.push(np.zeros(1000))
        snap = analyser.refresh()
        assert len(snap.waveform) == 256 and len(snap.spectrum) == 256
        assert not snap.spectrum.any()

    def test_views_are_read_only(self):
        snap = Analyser(size=64).snapshot()
        with pytest.raises(ValueError):
            snap.waveform[0] = 1.0
        with pytest.raises(ValueError):
            snap.spectrum[0] = 1

    def test_waveform_holds_latest_samples(self):
        analyser = Analyser(size=128)
        analyser.push(np.full(300, 0.1))
        analyser.push(np.linspace(-0.5, 0.5, 128))
        snap = analyser.refresh()
        np.testing.assert_allclose(snap.waveform, np.linspace(-0.5, 0.5, 128), atol=1e-6)

    def test_waveform_is_clipped(self):
        analyser = Analyser(size=32)
        analyser.push(np.full(64, 3.0))
        assert analyser.refresh().waveform.max() == pytest.approx(1.0)

    def test_sine_peaks_in_its_bin(self):
        sr, size = 8000, 512
        analyser = Analyser(size=size, smoothing=0.0)
        t = np.arange(2 * size) / sr
        freq = 1000.0
        # quiet enough that neighbouring bins stay below the 255 ceiling
        analyser.push(0.01 * np.sin(2 * np.pi * freq * t))
        spectrum = analyser.refresh().spectrum
        expected_bin = int(round(freq * 2 * size / sr))
        assert abs(int(np.argmax(spectrum)) - expected_bin) <= 1
        assert spectrum.max() > 0

    def test_smoothing_decays_gradually(self):
        analyser = Analyser(size=256, smoothing=0.8)
        analyser.push(np.random.default_rng(0).normal(0, 0.3, 512))
        loud = int(analyser.refresh().spectrum.max())
        analyser.push(np.zeros(512))
        after = int(analyser.refresh().spectrum.max())
        assert 0 < after < loud

    def test_snapshot_is_updated_in_place(self):
        analyser = Analyser(size=64)
        before = analyser.snapshot()
        analyser.push(np.full(128, 0.25))
        analyser.refresh()
        assert before.waveform[0] == pytest.approx(0.25)

    def test_reset(self):
        analyser = Analyser(size=64)
        analyser.push(np.full(128, 0.25))
        analyser.refresh()
        analyser.reset()
        snap = analyser.snapshot()
        assert not snap.waveform.any() and not snap.spectrum.any()

    @pytest.mark.parametrize("kwargs", [{"size": 0}, {"smoothing": 1.0}, {"min_db": -30, "max_db": -100}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            Analyser(**kwargs)
