"""
Tests for instrument recipes and the voice bank.
"""

import threading

import numpy as np
import pytest

from songsmith.audio import CLIP_CACHE, MAX_RELEASE_SECONDS, RECIPES, ClipCache, VoiceBank, render_note
from songsmith.audio.recipes import CLIP_CACHE_BYTES
from songsmith.audio.drums import synthesize_hihat, synthesize_kick, synthesize_snare
from songsmith.composition import InstrumentKind

SR = 8000


class TestRecipes:

    def test_every_instrument_has_a_recipe(self):
        assert set(RECIPES) == set(InstrumentKind)
        assert MAX_RELEASE_SECONDS == max(r.release for r in RECIPES.values())

    @pytest.mark.parametrize("kind", [InstrumentKind.LEAD, InstrumentKind.BASS, InstrumentKind.PAD])
    def test_clip_covers_gate_and_release(self, kind):
        clip = render_note(kind, 60, 1.0, 0.25, SR)
        assert len(clip) == int(round(0.25 * SR)) + int(round(RECIPES[kind].release * SR))
        assert np.all(np.isfinite(clip))
        assert np.max(np.abs(clip)) > 0.01

    def test_deterministic_and_read_only(self):
        a = render_note(InstrumentKind.PERCUSSION, 38, 0.7, 0.1, SR)
        b = render_note(InstrumentKind.PERCUSSION, 38, 0.7, 0.1, SR)
        assert np.array_equal(a, b)
        assert not a.flags.writeable
        with pytest.raises(ValueError):
            a[0] = 1.0

    def test_velocity_scales_linearly(self):
        full = render_note(InstrumentKind.BASS, 45, 1.0, 0.2, SR)
        half = render_note(InstrumentKind.BASS, 45, 0.5, 0.2, SR)
        np.testing.assert_allclose(half, full * 0.5)

    def test_percussion_ignores_duration(self):
        short = render_note(InstrumentKind.PERCUSSION, 36, 1.0, 0.05, SR)
        long = render_note(InstrumentKind.PERCUSSION, 36, 1.0, 2.0, SR)
        assert np.array_equal(short, long)

    def test_percussion_pitch_selects_drum(self):
        kick = render_note(InstrumentKind.PERCUSSION, 36, 1.0, 0.1, SR)
        snare = render_note(InstrumentKind.PERCUSSION, 38, 1.0, 0.1, SR)
        hat = render_note(InstrumentKind.PERCUSSION, 42, 1.0, 0.1, SR)
        open_hat = render_note(InstrumentKind.PERCUSSION, 46, 1.0, 0.1, SR)
        assert len({len(kick), len(snare), len(hat)}) == 3
        assert len(open_hat) > len(hat)

    def test_pitch_range(self):
        with pytest.raises(ValueError):
            render_note(InstrumentKind.LEAD, 128, 1.0, 0.1, SR)


class TestClipCache:

    def test_evicts_least_recently_used_by_bytes(self):
        cache = ClipCache(max_bytes=2000)
        cache.put("a", np.zeros(100))
        cache.put("b", np.zeros(100))
        assert cache.get("a") is not None
        cache.put("c", np.zeros(100))
        assert "b" not in cache
        assert "a" in cache and "c" in cache
        assert cache.nbytes == 1600

    def test_oversized_clip_is_not_stored(self):
        cache = ClipCache(max_bytes=100)
        cache.put("big", np.zeros(100))
        assert len(cache) == 0 and cache.nbytes == 0

    def test_replacing_a_key_keeps_the_count(self):
        cache = ClipCache(max_bytes=10_000)
        cache.put("a", np.zeros(100))
        cache.put("a", np.zeros(200))
        assert len(cache) == 1 and cache.nbytes == 1600

    def test_default_budget_is_bounded(self):
        assert CLIP_CACHE.max_bytes == CLIP_CACHE_BYTES < 100e6

    def test_long_notes_stay_within_budget(self, monkeypatch):
        budget = 4 * 1024 * 1024
        monkeypatch.setattr(CLIP_CACHE, "max_bytes", budget)
        CLIP_CACHE.clear()
        try:
            # 16 s pads are about 1 MB each at 8 kHz
            for pitch in range(48, 64):
                render_note(InstrumentKind.PAD, pitch, 1.0, 16.0, SR)
            assert CLIP_CACHE.nbytes <= budget
            assert 0 < len(CLIP_CACHE) < 16
        finally:
            CLIP_CACHE.clear()

    def test_repeated_notes_hit_the_cache(self):
        first = render_note(InstrumentKind.LEAD, 72, 1.0, 0.3, SR)
        assert render_note(InstrumentKind.LEAD, 72, 1.0, 0.3, SR) is first


class TestDrums:

    @pytest.mark.parametrize("synth", [synthesize_kick, synthesize_snare, synthesize_hihat])
    def test_hits_are_bounded(self, synth):
        hit = synth(sample_rate=SR, rng=np.random.default_rng(1))
        assert len(hit) > 0
        assert np.max(np.abs(hit)) <= 1.0 + 1e-9


class TestVoiceBank:

    def test_clock_advances_with_render(self):
        bank = VoiceBank(sample_rate=SR)
        assert bank.current_time == 0.0
        bank.render(400)
        bank.render(400)
        assert bank.current_frame == 800
        assert bank.current_time == pytest.approx(0.1)

    def test_future_trigger_starts_on_its_sample(self):
        bank = VoiceBank(sample_rate=SR)
        bank.trigger(InstrumentKind.LEAD, 69, 1.0, at_time=0.05, duration=0.1)
        block = bank.render(800)
        onset = int(round(0.05 * SR))
        assert np.all(block[:onset] == 0.0)
        clip = render_note(InstrumentKind.LEAD, 69, 1.0, 0.1, SR)
        np.testing.assert_array_equal(block[onset:], clip[:800 - onset])

    def test_prerendered_clip_is_used_as_is(self, monkeypatch):
        clip = render_note(InstrumentKind.BASS, 40, 0.6, 0.1, SR)

        def no_synthesis(*args, **kwargs):
            raise AssertionError("trigger rendered a clip it was given")

        monkeypatch.setattr("songsmith.audio.voices.render_note", no_synthesis)
        bank = VoiceBank(sample_rate=SR)
        bank.trigger(InstrumentKind.BASS, 40, 0.6, at_time=0.0, duration=0.1, clip=clip)
        np.testing.assert_array_equal(bank.render(len(clip)), clip)

    def test_late_trigger_starts_now(self):
        bank = VoiceBank(sample_rate=SR)
        bank.render(800)
        handle = bank.trigger(InstrumentKind.BASS, 40, 0.8, at_time=0.01, duration=0.1)
        assert handle.start_time == pytest.approx(0.1)
        assert not handle.dropped

    def test_voices_finish_and_are_reaped(self):
        bank = VoiceBank(sample_rate=SR)
        bank.trigger(InstrumentKind.LEAD, 60, 0.8, at_time=0.0, duration=0.1)
        assert bank.active_count == 1
        bank.render(int(0.1 * SR) + 8)
        # gate closed, release tail still sounding
        assert bank.active_count == 0
        assert bank.voice_count == 1
        bank.render(int(RECIPES[InstrumentKind.LEAD].release * SR))
        assert bank.voice_count == 0

    def test_release_all_silences_quickly(self):
        bank = VoiceBank(sample_rate=SR, forced_release=0.02)
        for pitch in (57, 60, 64):
            bank.trigger(InstrumentKind.PAD, pitch, 1.0, at_time=0.0, duration=2.0)
        bank.trigger(InstrumentKind.LEAD, 72, 1.0, at_time=1.0, duration=0.5)
        bank.render(800)
        bank.release_all()
        assert bank.active_count == 0
        # the not-yet-started lead note was dropped outright
        assert bank.voice_count == 3
        tail = bank.render(int(0.02 * SR))
        assert np.max(np.abs(tail)) > 0.0
        assert np.all(bank.render(800) == 0.0)
        assert bank.voice_count == 0

    def test_release_single_voice(self):
        bank = VoiceBank(sample_rate=SR)
        keep = bank.trigger(InstrumentKind.PAD, 57, 1.0, at_time=0.0, duration=2.0)
        cut = bank.trigger(InstrumentKind.PAD, 60, 1.0, at_time=0.0, duration=2.0)
        bank.render(100)
        bank.release(cut)
        assert bank.active_count == 1
        bank.render(800)
        assert bank.voice_count == 1
        bank.release(keep)
        assert bank.active_count == 0

    def test_polyphony_cap_steals_quietest(self):
        bank = VoiceBank(sample_rate=SR, max_voices=2)
        bank.trigger(InstrumentKind.PAD, 57, 0.9, at_time=0.0, duration=1.0)
        bank.trigger(InstrumentKind.PAD, 60, 0.2, at_time=0.0, duration=1.0)
        bank.render(100)
        bank.trigger(InstrumentKind.PAD, 64, 0.8, at_time=bank.current_time, duration=1.0)
        assert bank.active_count == 2
        bank.render(400)
        pitches = sorted(v.pitch for v in bank._voices if v.is_held(bank.current_frame))
        assert pitches == [57, 64]

    def test_release_all_from_another_thread(self):
        bank = VoiceBank(sample_rate=SR)
        for i in range(8):
            bank.trigger(InstrumentKind.LEAD, 60 + i, 0.5, at_time=i * 0.01, duration=1.0)
        bank.render(200)
        worker = threading.Thread(target=bank.release_all)
        worker.start()
        worker.join()
        assert bank.active_count == 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            VoiceBank(sample_rate=0)
        with pytest.raises(ValueError):
            VoiceBank(max_voices=0)
        with pytest.raises(ValueError):
            VoiceBank().render(-1)
