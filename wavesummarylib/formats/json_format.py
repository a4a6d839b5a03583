"""JSON summary data format.

Version 1 (one file per channel)::

    {"sample_rate": 44100, "samples_per_pixel": 256, "bits": 16,
     "length": 3, "version": 1, "data": [min, max, min, max, ...]}

Version 2 replaces ``data`` with ``chan0``, ``chan1``, ... in one file.
With ``bits == 8`` the values are the high bytes of the 16-bit extremes.
"""

from __future__ import annotations

import json
import logging
from typing import IO, Any

import numpy as np

from ..errors import FormatError
from ..events import EventBus, emit
from ..models import FileVersion, SummaryBuffer
from .base import FileExporter, append_decoded, read_file, scale_to_bits

log = logging.getLogger(__name__)

_HEADER_KEYS = ("sample_rate", "samples_per_pixel", "bits", "length", "version")

# Stored sample range per bit depth
_SAMPLE_RANGE = {8: (-128, 127), 16: (-32768, 32767)}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_field(payload: dict[str, Any], key: str, minimum: int) -> int:
    value = payload[key]
    if not _is_int(value) or value < minimum:
        raise FormatError(
            f"Invalid {key}: {value!r}, expected an integer >= {minimum}"
        )
    return value


class JsonFileExporter(FileExporter):
    id = "json"
    extension = ".json"

    def _header(self, buffer: SummaryBuffer, bits: int) -> dict[str, Any]:
        return {
            "sample_rate": buffer.sample_rate,
            "samples_per_pixel": buffer.samples_per_pixel,
            "bits": bits,
            "length": buffer.size(),
            "version": int(self.version),
        }

    def write_channel(
        self, stream: IO, buffer: SummaryBuffer, channel: int, bits: int,
    ) -> None:
        payload = self._header(buffer, bits)
        payload["length"] = buffer.size(channel)
        payload["data"] = scale_to_bits(buffer.channel_data(channel), bits).ravel().tolist()
        json.dump(payload, stream)
        stream.write("\n")

    def write_interleaved(
        self, stream: IO, buffer: SummaryBuffer, bits: int,
    ) -> None:
        payload = self._header(buffer, bits)
        for chan in range(buffer.num_channels):
            payload[f"chan{chan}"] = (
                scale_to_bits(buffer.channel_data(chan), bits).ravel().tolist()
            )
        json.dump(payload, stream)
        stream.write("\n")


def _channel_arrays(payload: dict[str, Any], version: FileVersion) -> list[Any]:
    if version is FileVersion.PER_CHANNEL:
        if "data" not in payload:
            raise FormatError("Missing 'data' array")
        return [payload["data"]]
    arrays = []
    while f"chan{len(arrays)}" in payload:
        arrays.append(payload[f"chan{len(arrays)}"])
    if not arrays:
        raise FormatError("Missing 'chan0' array")
    return arrays


def decode_json(
    payload: Any,
    buffer: SummaryBuffer | None = None,
    *,
    mono: bool = False,
) -> tuple[SummaryBuffer, FileVersion]:
    """Decode a parsed JSON object into *buffer* (a new one if omitted).

    Raises :class:`FormatError` for missing or out-of-range fields, unknown
    versions, non-integer or out-of-range sample values, and arrays whose
    length does not match ``length``. The buffer is only modified once the
    whole payload has been checked.
    """
    if buffer is None:
        buffer = SummaryBuffer()
    if not isinstance(payload, dict):
        raise FormatError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )
    missing = [k for k in _HEADER_KEYS if k not in payload]
    if missing:
        raise FormatError(f"Missing field(s): {', '.join(missing)}")

    version = _int_field(payload, "version", 1)
    if version != FileVersion.PER_CHANNEL and version != FileVersion.INTERLEAVED:
        raise FormatError(f"Unknown file version {version}")
    version = FileVersion(version)

    bits = _int_field(payload, "bits", 8)
    if bits not in (8, 16):
        raise FormatError(f"Invalid bits: {bits}, must be either 8 or 16")
    sample_rate = _int_field(payload, "sample_rate", 1)
    samples_per_pixel = _int_field(payload, "samples_per_pixel", 2)
    length = _int_field(payload, "length", 0)

    lo, hi = _SAMPLE_RANGE[bits]
    columns = []
    for chan, array in enumerate(_channel_arrays(payload, version)):
        if not isinstance(array, list) or not all(_is_int(v) for v in array):
            raise FormatError(f"Channel {chan}: expected an array of integers")
        if len(array) != 2 * length:
            raise FormatError(
                f"corrupt: expected {length} points, "
                f"found {len(array) / 2:g} in channel {chan}"
            )
        if array and (min(array) < lo or max(array) > hi):
            raise FormatError(
                f"Channel {chan}: values outside {bits}-bit range [{lo}, {hi}]"
            )
        columns.append(np.array(array, dtype=np.int64).reshape(length, 2))

    buffer.bits = bits
    buffer.sample_rate = sample_rate
    buffer.samples_per_pixel = samples_per_pixel

    values = np.stack(columns, axis=1)
    if bits == 8:
        values = values * 256
    append_decoded(buffer, values, mono)
    return buffer, version


def read_json(
    path: str,
    buffer: SummaryBuffer | None = None,
    *,
    mono: bool = False,
    event_bus: EventBus | None = None,
) -> SummaryBuffer:
    """Read a ``.json`` summary file. See :func:`decode_json`."""
    log.info("Reading waveform data file: %s", path)

    def _load(stream: IO) -> Any:
        try:
            return json.load(stream)
        except ValueError as e:
            raise FormatError(f"Invalid JSON in {path}: {e}") from e

    payload = read_file(path, _load, binary=False)
    buffer, version = decode_json(payload, buffer, mono=mono)
    emit(event_bus, "file.read",
         path=path, format="json", version=int(version),
         points=buffer.size(), channels=buffer.num_channels)
    return buffer
