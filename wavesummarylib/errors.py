"""Exception hierarchy for wavesummary.

Every error raised by the library derives from :class:`WaveformError`.
Where a builtin exception type describes the same condition it is mixed in,
so callers can catch either (e.g. ``ValueError`` or ``ValidationError``).
"""

from __future__ import annotations


class WaveformError(Exception):
    """Base class for all wavesummary errors."""


class ValidationError(WaveformError, ValueError):
    """A configuration value or argument is out of range."""


class OutOfRangeError(WaveformError, IndexError):
    """A channel or point index does not exist in a buffer."""


class FormatError(WaveformError):
    """Summary data cannot be encoded or decoded."""


class ZoomError(WaveformError):
    """Requested resolution is finer than the source data holds."""


class InvalidStateError(WaveformError, RuntimeError):
    """An operation was called out of order."""


class WaveformIOError(WaveformError, OSError):
    """Opening, reading or writing a file failed.

    Attributes:
        filename: The file the operation was applied to.
    """

    def __init__(self, message: str, filename: str | None = None) -> None:
        if filename:
            message = f"{message} in file: {filename}"
        super().__init__(message)
        self.filename = filename
