"""Plain text summary data format.

One ``min,max`` line per pixel (version 1, one file per channel), or
``min,max,channel`` lines ordered by pixel then channel (version 2, one
file). There is no header, so text files cannot be read back.
"""

from __future__ import annotations

from typing import IO

import numpy as np

from ..models import SummaryBuffer
from .base import FileExporter, scale_to_bits


class TxtFileExporter(FileExporter):
    id = "txt"
    extension = ".txt"

    def write_channel(
        self, stream: IO, buffer: SummaryBuffer, channel: int, bits: int,
    ) -> None:
        data = scale_to_bits(buffer.channel_data(channel), bits)
        for min_value, max_value in data.tolist():
            stream.write(f"{min_value},{max_value}\n")

    def write_interleaved(
        self, stream: IO, buffer: SummaryBuffer, bits: int,
    ) -> None:
        num_channels = buffer.num_channels
        data = np.stack(
            [scale_to_bits(buffer.channel_data(c), bits)
             for c in range(num_channels)],
            axis=1,
        )
        for pixel in data.tolist():
            for chan, (min_value, max_value) in enumerate(pixel):
                stream.write(f"{min_value},{max_value},{chan}\n")
