"""
songsmith command line.

Usage:
    python -m songsmith validate song.json
    python -m songsmith render song.json -o song.wav     # .flac/.ogg via soundfile
    python -m songsmith midi song.json -o song.mid
    python -m songsmith play song.json
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import soundfile as sf

from .composition.mixing import to_channels
from .composition.model import Composition
from .config import AudioConfig, EngineConfig, ExportConfig
from .errors import SongsmithError
from .export.midi import encode_midi
from .export.offline import OfflineRenderer
from .export.wav import encode_wav
from .playback.engine import Engine

logger = logging.getLogger(__name__)


def load_composition(path: str) -> Composition:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SongsmithError(f"cannot read {path}: {e}") from e
    return Composition.from_json(text)


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    return EngineConfig(
        audio=AudioConfig(sample_rate=args.sample_rate, channels=args.channels, device=args.device),
        export=ExportConfig(tail_seconds=args.tail, program_changes=getattr(args, "programs", False)),
    )


def cmd_validate(args: argparse.Namespace) -> int:
    composition = load_composition(args.file)
    print(f"{composition.title or args.file}: {len(composition.tracks)} tracks, "
          f"{composition.note_count} notes at {composition.tempo:g} BPM")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    composition = load_composition(args.file)
    config = _engine_config(args)
    renderer = OfflineRenderer(
        sample_rate=config.audio.sample_rate,
        block_size=config.export.block_size,
        tail_seconds=config.export.tail_seconds,
    )
    samples = to_channels(renderer.render(composition), config.audio.channels)
    out = Path(args.output)
    if out.suffix.lower() == ".wav":
        out.write_bytes(encode_wav(samples, config.audio.sample_rate))
    else:
        sf.write(str(out), samples, config.audio.sample_rate)
    logger.info("Wrote %s (%.2fs)", out, len(samples) / config.audio.sample_rate)
    return 0


def cmd_midi(args: argparse.Namespace) -> int:
    composition = load_composition(args.file)
    data = encode_midi(composition, ticks_per_beat=args.ticks_per_beat, program_changes=args.programs)
    Path(args.output).write_bytes(data)
    logger.info("Wrote %s (%d bytes)", args.output, len(data))
    return 0


def cmd_play(args: argparse.Namespace) -> int:
    composition = load_composition(args.file)
    with Engine(_engine_config(args)) as engine:
        engine.load(composition)
        engine.play()
        try:
            while engine.is_playing:
                time.sleep(0.1)
            # let release tails ring out
            time.sleep(args.tail)
        except KeyboardInterrupt:
            engine.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="songsmith", description="Play and export generated compositions")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    audio = argparse.ArgumentParser(add_help=False)
    audio.add_argument("--sample-rate", type=int, default=44100, help="Sample rate in Hz")
    audio.add_argument("--channels", type=int, default=1, choices=(1, 2), help="Output channels")
    audio.add_argument("--tail", type=float, default=1.0, help="Seconds of release tail after the last note")
    audio.add_argument("--device", default=None, help="Output device index or name")

    validate_parser = subparsers.add_parser("validate", help="Check a composition file")
    validate_parser.add_argument("file", help="Composition JSON")
    validate_parser.set_defaults(func=cmd_validate)

    render_parser = subparsers.add_parser("render", parents=[audio], help="Render audio offline")
    render_parser.add_argument("file", help="Composition JSON")
    render_parser.add_argument("-o", "--output", required=True, help="Output audio file")
    render_parser.set_defaults(func=cmd_render)

    midi_parser = subparsers.add_parser("midi", help="Export a MIDI file")
    midi_parser.add_argument("file", help="Composition JSON")
    midi_parser.add_argument("-o", "--output", required=True, help="Output .mid file")
    midi_parser.add_argument("--ticks-per-beat", type=int, default=480, help="MIDI division")
    midi_parser.add_argument("--programs", action="store_true", help="Write General MIDI program changes")
    midi_parser.set_defaults(func=cmd_midi)

    play_parser = subparsers.add_parser("play", parents=[audio], help="Play through the default output")
    play_parser.add_argument("file", help="Composition JSON")
    play_parser.set_defaults(func=cmd_play)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if getattr(args, "device", None) is not None and args.device.isdigit():
        args.device = int(args.device)
    try:
        return args.func(args)
    except SongsmithError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
