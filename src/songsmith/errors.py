"""
Error taxonomy for the playback and export engine.

Validation errors are raised while a composition is being loaded, before
anything is scheduled or rendered, and name the offending field.
"""

from typing import Optional


class SongsmithError(Exception):
    """Base class for every error raised by songsmith."""


class ValidationError(SongsmithError, ValueError):
    """A composition field failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.reason = message
        super().__init__(f"{field}: {message}" if field else message)

    def at(self, prefix: str) -> "ValidationError":
        """Return a copy of this error with ``prefix`` prepended to the field path."""
        if self.field and not self.field.startswith("["):
            field = f"{prefix}.{self.field}"
        else:
            field = f"{prefix}{self.field or ''}"
        return type(self)(self.reason, field)


class MalformedTimeToken(ValidationError):
    """A position or duration token does not match the time grammar."""


class PitchOutOfRange(ValidationError):
    """A note name does not resolve to a MIDI note number in 0..127."""


class InvalidComposition(ValidationError):
    """Tempo is not positive, or the composition is structurally incomplete."""


class AudioInitError(SongsmithError):
    """The audio output device or stream could not be started."""


class ExportError(SongsmithError, RuntimeError):
    """Encoding a WAV or MIDI payload failed."""
