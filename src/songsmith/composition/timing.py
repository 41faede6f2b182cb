"""
Symbolic time model.

Converts ``bar:beat:sixteenth`` positions and ``Nn`` / ``Nm`` durations into
beats and absolute seconds for a given tempo. Bars are fixed at four beats.
Every function here is pure, so the live transport and the offline renderer
derive identical schedules from the same tokens.
"""

import math
import re
from typing import Tuple

from ..errors import MalformedTimeToken

BEATS_PER_BAR = 4
SIXTEENTHS_PER_BEAT = 4

_POSITION_RE = re.compile(r"^(\d+):(\d+):(\d+)$")
_DURATION_RE = re.compile(r"^(\d+)([nm])$")


def _validate_tempo(tempo: float) -> None:
    if not isinstance(tempo, (int, float)) or isinstance(tempo, bool):
        raise ValueError(f"Tempo must be a number, got {tempo!r}")
    if not math.isfinite(tempo) or tempo <= 0:
        raise ValueError(f"Tempo must be positive, got {tempo}")


def beat_duration(tempo: float) -> float:
    """
    Length of one beat in seconds.

    Example:
        >>> beat_duration(120)
        0.5
    """
    _validate_tempo(tempo)
    return 60.0 / tempo


def parse_position(token: str) -> Tuple[int, int, int]:
    """
    Split a ``bar:beat:sixteenth`` token into its three integer fields.

    Raises:
        MalformedTimeToken: if the token is not three non-negative integers.
    """
    if not isinstance(token, str):
        raise MalformedTimeToken(f"position token must be a string, got {token!r}")
    match = _POSITION_RE.match(token.strip())
    if match is None:
        raise MalformedTimeToken(f"expected 'bar:beat:sixteenth', got {token!r}")
    bar, beat, sixteenth = (int(g) for g in match.groups())
    return bar, beat, sixteenth


def parse_duration(token: str) -> Tuple[int, str]:
    """
    Split a duration token into ``(N, unit)`` where unit is ``'n'`` or ``'m'``.

    Raises:
        MalformedTimeToken: for tokens outside the grammar or with N <= 0.
    """
    if not isinstance(token, str):
        raise MalformedTimeToken(f"duration token must be a string, got {token!r}")
    match = _DURATION_RE.match(token.strip())
    if match is None:
        raise MalformedTimeToken(f"expected 'Nn' or 'Nm', got {token!r}")
    count = int(match.group(1))
    if count <= 0:
        raise MalformedTimeToken(f"duration count must be positive, got {token!r}")
    return count, match.group(2)


def position_to_beats(token: str) -> float:
    """Number of beats from the top of the piece to a position token."""
    bar, beat, sixteenth = parse_position(token)
    return bar * BEATS_PER_BAR + beat + sixteenth / SIXTEENTHS_PER_BEAT


def duration_to_beats(token: str) -> float:
    """Number of beats spanned by a duration token."""
    count, unit = parse_duration(token)
    if unit == "n":
        return BEATS_PER_BAR / count
    return float(count * BEATS_PER_BAR)


def position_to_seconds(token: str, tempo: float) -> float:
    """
    Convert a position token to seconds.

    ``seconds = bar*4*b + beat*b + sixteenth*b/4`` with ``b = 60/tempo``.

    Example:
        >>> position_to_seconds("1:2:2", 120)
        3.25
    """
    beat = beat_duration(tempo)
    bar, beats, sixteenth = parse_position(token)
    return bar * BEATS_PER_BAR * beat + beats * beat + sixteenth * (beat / SIXTEENTHS_PER_BEAT)


def duration_to_seconds(token: str, tempo: float) -> float:
    """
    Convert a duration token to seconds.

    ``Nn`` is a 1/N note (``4*b/N``); ``Nm`` is N whole measures (``N*4*b``).

    Example:
        >>> duration_to_seconds("4n", 120)
        0.5
        >>> duration_to_seconds("2m", 120)
        4.0
    """
    beat = beat_duration(tempo)
    count, unit = parse_duration(token)
    if unit == "n":
        return BEATS_PER_BAR * beat / count
    return count * BEATS_PER_BAR * beat
