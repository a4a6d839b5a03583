from __future__ import annotations

import os

from ..errors import ValidationError
from ..events import EventBus
from ..models import FileVersion, SummaryBuffer
from .base import FileExporter, channel_filename
from .dat import DatFileExporter, decode_dat, read_dat
from .json_format import JsonFileExporter, decode_json, read_json
from .text import TxtFileExporter

EXPORTERS: dict[str, type[FileExporter]] = {
    ".dat": DatFileExporter,
    ".json": JsonFileExporter,
    ".txt": TxtFileExporter,
}

IMPORTERS = {
    ".dat": read_dat,
    ".json": read_json,
}

DATA_EXTENSIONS = tuple(IMPORTERS)


def _extension(path: str) -> str:
    return os.path.splitext(path)[1].lower()


def exporter_for(
    output_path: str,
    bits: int | None = None,
    version: int | FileVersion = FileVersion.PER_CHANNEL,
    event_bus: EventBus | None = None,
) -> FileExporter:
    """Return the exporter matching *output_path*'s extension."""
    cls = EXPORTERS.get(_extension(output_path))
    if cls is None:
        raise ValidationError(f"Unknown output file type: {output_path}")
    return cls(bits=bits, version=version, event_bus=event_bus)


def load_buffer(
    input_path: str,
    buffer: SummaryBuffer | None = None,
    *,
    mono: bool = False,
    event_bus: EventBus | None = None,
) -> SummaryBuffer:
    """Read a ``.dat`` or ``.json`` summary file."""
    reader = IMPORTERS.get(_extension(input_path))
    if reader is None:
        raise ValidationError(f"Unknown input file type: {input_path}")
    return reader(input_path, buffer, mono=mono, event_bus=event_bus)


__all__ = [
    "EXPORTERS",
    "IMPORTERS",
    "DATA_EXTENSIONS",
    "FileExporter",
    "DatFileExporter",
    "JsonFileExporter",
    "TxtFileExporter",
    "channel_filename",
    "decode_dat",
    "decode_json",
    "read_dat",
    "read_json",
    "exporter_for",
    "load_buffer",
]
