"""
Tests for the command line front end.
"""

import json

import mido
import soundfile as sf

from songsmith.cli import main


def _write(tmp_path, doc, name="song.json"):
    path = tmp_path / name
    path.write_text(json.dumps(doc))
    return str(path)


SONG = {
    "title": "Tiny",
    "bpm": 120,
    "tracks": [
        {"name": "Lead", "instrument": "synth",
         "notes": [{"note": "E4", "duration": "8n", "time": "0:0:0", "velocity": 0.7}]},
        {"name": "Kit", "instrument": "drums",
         "notes": [{"note": "C2", "duration": "16n", "time": "0:0:0"}]},
    ],
}


class TestCli:

    def test_validate(self, tmp_path, capsys):
        assert main(["validate", _write(tmp_path, SONG)]) == 0
        assert "2 tracks, 2 notes" in capsys.readouterr().out

    def test_validate_reports_field(self, tmp_path, caplog):
        bad = dict(SONG, tracks=[{"instrument": "lead", "notes": [{"note": "E4", "duration": "0n", "time": "0:0:0"}]}])
        assert main(["validate", _write(tmp_path, bad)]) == 1
        assert "tracks[0].notes[0].duration" in caplog.text

    def test_missing_file(self, tmp_path):
        assert main(["validate", str(tmp_path / "nope.json")]) == 1

    def test_render_wav(self, tmp_path):
        out = tmp_path / "tiny.wav"
        assert main(["render", _write(tmp_path, SONG), "-o", str(out), "--sample-rate", "8000"]) == 0
        info = sf.info(str(out))
        assert info.samplerate == 8000
        assert info.channels == 1
        assert info.frames == 8000 + 2000

    def test_render_stereo_flac(self, tmp_path):
        out = tmp_path / "tiny.flac"
        args = ["render", _write(tmp_path, SONG), "-o", str(out), "--sample-rate", "8000", "--channels", "2"]
        assert main(args) == 0
        data, sr = sf.read(str(out))
        assert sr == 8000 and data.shape[1] == 2

    def test_midi(self, tmp_path):
        out = tmp_path / "tiny.mid"
        assert main(["midi", _write(tmp_path, SONG), "-o", str(out), "--programs"]) == 0
        midi = mido.MidiFile(str(out))
        assert len(midi.tracks) == 3
        assert midi.tracks[1][0].type == "program_change"
