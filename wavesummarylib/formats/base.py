from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import IO, Any, Callable

import numpy as np

from ..errors import FormatError, ValidationError, WaveformIOError
from ..events import EventBus, emit
from ..models import FileVersion, SummaryBuffer

log = logging.getLogger(__name__)


def to_file_version(version: int | FileVersion) -> FileVersion:
    try:
        return FileVersion(int(version))
    except (TypeError, ValueError):
        raise ValidationError(
            f"Unknown file version: {version!r}, must be either 1 or 2"
        ) from None


def channel_filename(output_path: str, channel: int, num_channels: int) -> str:
    """Per-channel output name used by version 1 files.

    ``out.dat`` becomes ``out-chan0.dat``, ``out-chan1.dat``, ... when
    there is more than one channel; a single channel keeps the name.
    """
    if num_channels <= 1:
        return output_path
    root, ext = os.path.splitext(output_path)
    return f"{root}-chan{channel}{ext}"


def scale_to_bits(data: np.ndarray, bits: int) -> np.ndarray:
    """Reduce 16-bit values to *bits* resolution (arithmetic shift)."""
    if bits == 8:
        return data >> 8
    return data


def mix_channels(values: np.ndarray) -> np.ndarray:
    """Average ``(points, channels, 2)`` pairs across channels.

    Truncates toward zero, like the generator's mono mix.
    """
    channels = values.shape[1]
    total = values.astype(np.int64).sum(axis=1)
    return np.sign(total) * (np.abs(total) // channels)


def append_decoded(
    buffer: SummaryBuffer, values: np.ndarray, mono: bool,
) -> None:
    """Append decoded ``(points, channels, 2)`` values to *buffer*."""
    if mono and values.shape[1] > 1:
        mixed = mix_channels(values)
        buffer.extend(mixed[:, 0], mixed[:, 1], 0)
        return
    for chan in range(values.shape[1]):
        buffer.extend(values[:, chan, 0], values[:, chan, 1], chan)


def read_file(path: str, reader: Callable[[IO], Any], binary: bool) -> Any:
    """Open *path* and hand the stream to *reader*, wrapping OS errors."""
    try:
        if binary:
            with open(path, "rb") as stream:
                return reader(stream)
        with open(path, "r", encoding="utf-8") as stream:
            return reader(stream)
    except OSError as e:
        raise WaveformIOError(
            f"Failed to read data file: {e.strerror or e}", path,
        ) from e


class FileExporter(ABC):
    """Writes a :class:`SummaryBuffer` to one or more files.

    The wire layout is chosen by *version*: ``PER_CHANNEL`` writes one file
    per channel through :meth:`write_channel`, ``INTERLEAVED`` writes a
    single file through :meth:`write_interleaved`.

    *bits* of ``None`` exports at the buffer's own bit depth.
    """
    id: str = ""
    extension: str = ""
    binary: bool = False

    def __init__(
        self,
        bits: int | None = None,
        version: int | FileVersion = FileVersion.PER_CHANNEL,
        event_bus: EventBus | None = None,
    ):
        if bits is not None and bits not in (8, 16):
            raise ValidationError(
                f"Invalid bits: {bits}, must be either 8 or 16"
            )
        self.bits = bits
        self.version = to_file_version(version)
        self.event_bus = event_bus

    def export(self, buffer: SummaryBuffer, output_path: str) -> list[str]:
        """Write *buffer* and return the paths of the files written.

        Raises
        ------
        FormatError
            If the channels hold different numbers of points. Nothing is
            written in that case.
        WaveformIOError
            If a file cannot be opened or written. Files already
            written are left in place.
        """
        if not buffer.channel_sizes_match():
            sizes = [buffer.size(c) for c in range(buffer.num_channels)]
            raise FormatError(
                f"Channel sizes do not match: {sizes}"
            )

        bits = self.bits or buffer.bits
        written: list[str] = []

        if self.version is FileVersion.PER_CHANNEL:
            num_channels = buffer.num_channels
            for chan in range(num_channels):
                path = channel_filename(output_path, chan, num_channels)
                self._write_file(
                    path, lambda s, c=chan: self.write_channel(s, buffer, c, bits),
                )
                written.append(path)
        elif self.version is FileVersion.INTERLEAVED:
            self._write_file(
                output_path, lambda s: self.write_interleaved(s, buffer, bits),
            )
            written.append(output_path)

        return written

    def _write_file(self, path: str, writer: Callable[[IO], None]) -> None:
        log.info("Writing output file: %s", path)
        try:
            if self.binary:
                with open(path, "wb") as stream:
                    writer(stream)
            else:
                with open(path, "w", encoding="utf-8", newline="\n") as stream:
                    writer(stream)
        except OSError as e:
            raise WaveformIOError(
                f"Failed to write data file: {e.strerror or e}", path,
            ) from e
        emit(self.event_bus, "file.write",
             path=path, format=self.id, version=int(self.version))

    @abstractmethod
    def write_channel(
        self, stream: IO, buffer: SummaryBuffer, channel: int, bits: int,
    ) -> None:
        """Write a complete version 1 file holding one channel."""
        ...

    @abstractmethod
    def write_interleaved(
        self, stream: IO, buffer: SummaryBuffer, bits: int,
    ) -> None:
        """Write a complete version 2 file holding every channel."""
        ...
