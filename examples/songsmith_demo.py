"""
songsmith Demo

Renders a short four-track loop through the instrument recipes and exports
it as WAV and MIDI, plus one file per instrument.
"""

import numpy as np
import soundfile as sf
from pathlib import Path

# Add src to path for development
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from songsmith import Composition, Engine, export_filename
from songsmith.audio import render_note
from songsmith.composition import InstrumentKind


DEMO_SONG = {
    "title": "Demo Loop",
    "bpm": 104,
    "scale": "A minor",
    "mood": "driving",
    "tracks": [
        {"name": "Lead", "instrument": "lead", "notes": [
            {"note": n, "duration": "8n", "time": f"{i // 8}:{(i // 2) % 4}:{2 * (i % 2)}", "velocity": 0.7}
            for i, n in enumerate(["A4", "C5", "E5", "C5", "G4", "B4", "D5", "B4",
                                   "F4", "A4", "C5", "A4", "E4", "G#4", "B4", "E5"])
        ]},
        {"name": "Bass", "instrument": "bass", "notes": [
            {"note": n, "duration": "2n", "time": f"{i // 2}:{2 * (i % 2)}:0", "velocity": 0.9}
            for i, n in enumerate(["A2", "A2", "F2", "E2"])
        ]},
        {"name": "Drums", "instrument": "drums", "notes": [
            {"note": "C2" if beat % 2 == 0 else "D2", "duration": "16n", "time": f"{bar}:{beat}:0"}
            for bar in range(2) for beat in range(4)
        ] + [
            {"note": "F#2", "duration": "16n", "time": f"{bar}:{beat}:2", "velocity": 0.4}
            for bar in range(2) for beat in range(4)
        ]},
        {"name": "Pad", "instrument": "pad", "notes": [
            {"note": n, "duration": "2m", "time": "0:0:0", "velocity": 0.5} for n in ["A3", "C4", "E4"]
        ]},
    ],
}


def demo_instruments(output_dir: Path, sample_rate: int = 44100):
    """Render one note per instrument recipe."""
    print("Rendering instruments...")

    for kind, pitch in [(InstrumentKind.LEAD, 69), (InstrumentKind.BASS, 45),
                        (InstrumentKind.PAD, 57), (InstrumentKind.PERCUSSION, 36)]:
        audio = render_note(kind, pitch, velocity=0.8, duration=1.0, sample_rate=sample_rate)
        output_path = output_dir / f"instrument_{kind.value}.wav"
        sf.write(str(output_path), audio, sample_rate)
        print(f"  ✓ {kind.value}: {output_path} (peak {np.max(np.abs(audio)):.3f})")


def demo_exports(output_dir: Path):
    """Export the demo loop the way the app's download buttons do."""
    print("\nExporting demo loop...")

    composition = Composition.from_dict(DEMO_SONG)
    engine = Engine()

    for extension, export in [("wav", engine.export_wav), ("mid", engine.export_midi)]:
        output_path = output_dir / export_filename(composition, extension)
        output_path.write_bytes(export(composition))
        print(f"  ✓ {extension.upper()}: {output_path}")


def main():
    """Run all demos."""
    print("=" * 50)
    print("songsmith Demo")
    print("=" * 50)

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    demo_instruments(output_dir)
    demo_exports(output_dir)

    print("\n" + "=" * 50)
    print(f"All demos complete! Output in: {output_dir}")
    print("=" * 50)


if __name__ == "__main__":
    main()
