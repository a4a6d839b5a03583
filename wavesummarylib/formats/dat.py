"""Binary ``.dat`` summary data format.

Layout (all integers in the host's native byte order)::

    int32   version            1 or 2
    uint32  flags              bit 0 set for 8-bit data
    uint32  sample_rate
    uint32  samples_per_pixel
    uint32  point_count
    uint32  channel_count      version 2 only

followed by ``point_count`` pairs per channel. Version 1 files hold a
single channel. Version 2 files interleave channels per pixel: pixel 0 of
every channel in ascending channel order, then pixel 1, and so on. Each
pair is ``(min, max)`` as two int8 (8-bit) or two int16 (16-bit) values.
"""

from __future__ import annotations

import logging
import struct
from typing import IO

import numpy as np

from ..errors import FormatError
from ..events import EventBus, emit
from ..models import FileVersion, SummaryBuffer
from .base import FileExporter, append_decoded, read_file, scale_to_bits

log = logging.getLogger(__name__)

FLAG_8_BIT = 0x00000001

# Upper bound on the channel count accepted from version 2 headers
MAX_CHANNELS = 64

_VERSION = struct.Struct("=i")
_HEADER = struct.Struct("=IIII")   # flags, sample_rate, spp, point_count
_CHANNELS = struct.Struct("=I")

_INT16 = np.dtype("=i2")


def _pack_pairs(data: np.ndarray, bits: int) -> bytes:
    if bits == 8:
        return scale_to_bits(data, 8).astype(np.int8).tobytes()
    return data.astype(_INT16).tobytes()


def _read_exact(stream: IO, size: int, what: str) -> bytes:
    raw = stream.read(size)
    if len(raw) < size:
        raise FormatError(f"Truncated header: missing {what}")
    return raw


class DatFileExporter(FileExporter):
    id = "dat"
    extension = ".dat"
    binary = True

    def _header(self, buffer: SummaryBuffer, bits: int, size: int) -> bytes:
        flags = FLAG_8_BIT if bits == 8 else 0
        return _VERSION.pack(int(self.version)) + _HEADER.pack(
            flags, buffer.sample_rate, buffer.samples_per_pixel, size,
        )

    def write_channel(
        self, stream: IO, buffer: SummaryBuffer, channel: int, bits: int,
    ) -> None:
        data = buffer.channel_data(channel)
        stream.write(self._header(buffer, bits, data.shape[0]))
        stream.write(_pack_pairs(data, bits))

    def write_interleaved(
        self, stream: IO, buffer: SummaryBuffer, bits: int,
    ) -> None:
        num_channels = buffer.num_channels
        stream.write(self._header(buffer, bits, buffer.size()))
        stream.write(_CHANNELS.pack(num_channels))
        # (points, channels, 2): pixel-major, channel-minor
        data = np.stack(
            [buffer.channel_data(c) for c in range(num_channels)], axis=1,
        )
        stream.write(_pack_pairs(data, bits))


def decode_dat(
    stream: IO,
    buffer: SummaryBuffer | None = None,
    *,
    mono: bool = False,
) -> tuple[SummaryBuffer, FileVersion]:
    """Decode a ``.dat`` stream into *buffer* (a new one if omitted).

    Decoded pairs are appended to the buffer's channels. With *mono*,
    multi-channel data is averaged into channel 0.

    Returns the buffer and the file version read from the header.

    Raises
    ------
    FormatError
        Unknown version, truncated or out-of-range header, or a body
        holding a different number of points than the header declares.
        A bad header leaves *buffer* untouched; a bad body leaves only
        its header fields updated.
    """
    if buffer is None:
        buffer = SummaryBuffer()

    version = _VERSION.unpack(_read_exact(stream, _VERSION.size, "version"))[0]
    if version != FileVersion.PER_CHANNEL and version != FileVersion.INTERLEAVED:
        raise FormatError(f"Unknown file version {version}")
    version = FileVersion(version)

    flags, sample_rate, samples_per_pixel, size = _HEADER.unpack(
        _read_exact(stream, _HEADER.size, "header fields"),
    )
    channels = 1
    if version is FileVersion.INTERLEAVED:
        channels = _CHANNELS.unpack(
            _read_exact(stream, _CHANNELS.size, "channel count"),
        )[0]
        if channels < 1 or channels > MAX_CHANNELS:
            raise FormatError(
                f"Invalid channel count: {channels}, must be 1 to {MAX_CHANNELS}"
            )
    if sample_rate < 1:
        raise FormatError(f"Invalid sample rate: {sample_rate} Hz")
    if samples_per_pixel < 2:
        raise FormatError(
            f"Invalid samples per pixel: {samples_per_pixel}, minimum 2"
        )

    buffer.bits = 8 if flags & FLAG_8_BIT else 16
    buffer.sample_rate = sample_rate
    buffer.samples_per_pixel = samples_per_pixel

    log.debug("File version: %d, sample rate: %d Hz, bits: %d, "
              "samples per pixel: %d, length: %d points, channels: %d",
              version, sample_rate, buffer.bits, samples_per_pixel,
              size, channels)

    dtype = np.dtype(np.int8) if buffer.bits == 8 else _INT16
    pair_bytes = 2 * dtype.itemsize * channels
    body = stream.read()
    found, leftover = divmod(len(body), pair_bytes)
    if found != size:
        raise FormatError(
            f"corrupt: expected {size} points, found {found}"
        )
    if leftover:
        raise FormatError(
            f"corrupt: {leftover} trailing byte(s) after {found} points"
        )

    values = np.frombuffer(body, dtype=dtype).astype(np.int32)
    values = values.reshape(found, channels, 2)
    if buffer.bits == 8:
        values = values * 256

    append_decoded(buffer, values, mono)
    return buffer, version


def read_dat(
    path: str,
    buffer: SummaryBuffer | None = None,
    *,
    mono: bool = False,
    event_bus: EventBus | None = None,
) -> SummaryBuffer:
    """Read a ``.dat`` file. See :func:`decode_dat`."""
    log.info("Reading waveform data file: %s", path)
    buffer, version = read_file(
        path, lambda s: decode_dat(s, buffer, mono=mono), binary=True,
    )
    emit(event_bus, "file.read",
         path=path, format="dat", version=int(version),
         points=buffer.size(), channels=buffer.num_channels)
    return buffer
