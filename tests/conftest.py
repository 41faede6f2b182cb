"""Shared fixtures."""

import pytest

from songsmith.composition import Composition


@pytest.fixture
def single_a4():
    """tempo 120, one lead track, one A4 quarter note at the top."""
    return Composition.from_dict({
        "title": "Single A",
        "bpm": 120,
        "tracks": [{
            "name": "Lead",
            "instrument": "lead",
            "notes": [{"note": "A4", "duration": "4n", "time": "0:0:0", "velocity": 0.8}],
        }],
    })


@pytest.fixture
def empty_composition():
    return Composition(title="Nothing", tempo=120)


@pytest.fixture
def band():
    """A short four-track phrase covering every instrument."""
    return Composition.from_dict({
        "title": "Late Night Loop",
        "bpm": 100,
        "scale": "A minor",
        "mood": "calm",
        "tracks": [
            {"name": "Melody", "instrument": "synth", "color": "#f0f", "notes": [
                {"note": "A4", "duration": "8n", "time": "0:0:0", "velocity": 0.9},
                {"note": "C5", "duration": "8n", "time": "0:0:2", "velocity": 0.7},
                {"note": "E5", "duration": "4n", "time": "0:1:0", "velocity": 0.8},
            ]},
            {"name": "Bass", "instrument": "bass", "notes": [
                {"note": "A2", "duration": "2n", "time": "0:0:0", "velocity": 1.0},
            ]},
            {"name": "Drums", "instrument": "drums", "notes": [
                {"note": "C2", "duration": "16n", "time": "0:0:0", "velocity": 1.0},
                {"note": "D2", "duration": "16n", "time": "0:1:0", "velocity": 0.9},
                {"note": "F#2", "duration": "16n", "time": "0:0:2", "velocity": 0.5},
            ]},
            {"name": "Pad", "instrument": "pad", "notes": [
                {"note": "A3", "duration": "1m", "time": "0:0:0", "velocity": 0.5},
            ]},
        ],
    })
