from __future__ import annotations

from enum import Enum, IntEnum
from typing import Iterable

import numpy as np

from .errors import OutOfRangeError, ValidationError


SAMPLE_MIN = -32768
SAMPLE_MAX = 32767


class FileVersion(IntEnum):
    """Wire format version of exported summary data.

    The integer value is the ``version`` field written to file headers.
    """
    PER_CHANNEL = 1   # one file per channel
    INTERLEAVED = 2   # one file, channels interleaved per pixel


class GeneratorState(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    DONE = "done"


def _check_sample(value: int) -> int:
    value = int(value)
    if value < SAMPLE_MIN or value > SAMPLE_MAX:
        raise ValidationError(
            f"Sample value {value} outside signed 16-bit range"
        )
    return value


class SummaryBuffer:
    """Multi-channel min/max summary data plus stream metadata.

    Each channel is an ordered sequence of ``(min, max)`` pairs, one per
    pixel. Values are held at full signed 16-bit range; ``bits`` only
    controls truncation when the buffer is written to or read from a file.

    A new buffer has a single empty channel 0. Writing to a channel index
    beyond the current count creates the missing channels; channels are
    never removed.

    ``sample_rate`` and ``samples_per_pixel`` read as 0 until set.
    """

    def __init__(self) -> None:
        self._sample_rate = 0
        self._samples_per_pixel = 0
        self._bits = 16
        # Flat [min0, max0, min1, max1, ...] per channel
        self._channels: list[list[int]] = [[]]

    def __repr__(self) -> str:
        sizes = [len(c) // 2 for c in self._channels]
        return (
            f"SummaryBuffer(sample_rate={self._sample_rate}, "
            f"samples_per_pixel={self._samples_per_pixel}, "
            f"bits={self._bits}, sizes={sizes})"
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @sample_rate.setter
    def sample_rate(self, value: int) -> None:
        value = int(value)
        if value < 1:
            raise ValidationError(
                f"Invalid sample rate: {value} Hz, minimum 1 Hz"
            )
        self._sample_rate = value

    @property
    def samples_per_pixel(self) -> int:
        return self._samples_per_pixel

    @samples_per_pixel.setter
    def samples_per_pixel(self, value: int) -> None:
        value = int(value)
        if value < 2:
            raise ValidationError(
                f"Invalid samples per pixel: {value}, minimum 2"
            )
        self._samples_per_pixel = value

    @property
    def bits(self) -> int:
        return self._bits

    @bits.setter
    def bits(self, value: int) -> None:
        if value not in (8, 16):
            raise ValidationError(
                f"Invalid bits: {value}, must be either 8 or 16"
            )
        self._bits = int(value)

    @property
    def num_channels(self) -> int:
        return len(self._channels)

    @property
    def duration_sec(self) -> float:
        """Audio duration covered by channel 0, in seconds."""
        if self._sample_rate <= 0:
            return 0.0
        return self.size() * self._samples_per_pixel / self._sample_rate

    # ------------------------------------------------------------------
    # Channel data
    # ------------------------------------------------------------------

    def _grow(self, channel: int) -> list[int]:
        if channel < 0:
            raise OutOfRangeError(f"Invalid channel index: {channel}")
        while len(self._channels) <= channel:
            self._channels.append([])
        return self._channels[channel]

    def _channel(self, channel: int) -> list[int]:
        if channel < 0 or channel >= len(self._channels):
            raise OutOfRangeError(f"Channel {channel} is not allocated")
        return self._channels[channel]

    def _pair_offset(self, index: int, channel: int) -> tuple[list[int], int]:
        data = self._channel(channel)
        if index < 0 or 2 * index >= len(data):
            raise OutOfRangeError(
                f"Point {index} out of range for channel {channel} "
                f"({len(data) // 2} points)"
            )
        return data, 2 * index

    def ensure_channel(self, channel: int) -> None:
        """Allocate channels up to and including *channel*."""
        self._grow(channel)

    def append(self, min_value: int, max_value: int, channel: int = 0) -> None:
        """Append one ``(min, max)`` pair, creating channels as needed."""
        min_value = _check_sample(min_value)
        max_value = _check_sample(max_value)
        data = self._grow(channel)
        data.append(min_value)
        data.append(max_value)

    def extend(
        self,
        mins: Iterable[int] | np.ndarray,
        maxs: Iterable[int] | np.ndarray,
        channel: int = 0,
    ) -> None:
        """Append many pairs at once. *mins* and *maxs* must be equal length."""
        mins_arr = np.asarray(mins, dtype=np.int64).ravel()
        maxs_arr = np.asarray(maxs, dtype=np.int64).ravel()
        if mins_arr.shape != maxs_arr.shape:
            raise ValidationError(
                f"Mismatched min/max lengths: {mins_arr.size} vs {maxs_arr.size}"
            )
        data = self._grow(channel)
        if mins_arr.size == 0:
            return
        lo = min(int(mins_arr.min()), int(maxs_arr.min()))
        hi = max(int(mins_arr.max()), int(maxs_arr.max()))
        if lo < SAMPLE_MIN or hi > SAMPLE_MAX:
            raise ValidationError("Sample values outside signed 16-bit range")
        data.extend(np.column_stack((mins_arr, maxs_arr)).ravel().tolist())

    def set_pair(
        self, index: int, min_value: int, max_value: int, channel: int = 0,
    ) -> None:
        """Overwrite the pair at *index* in an existing channel."""
        data, offset = self._pair_offset(index, channel)
        data[offset] = _check_sample(min_value)
        data[offset + 1] = _check_sample(max_value)

    def get_min(self, index: int, channel: int = 0) -> int:
        data, offset = self._pair_offset(index, channel)
        return data[offset]

    def get_max(self, index: int, channel: int = 0) -> int:
        data, offset = self._pair_offset(index, channel)
        return data[offset + 1]

    def size(self, channel: int = 0) -> int:
        """Number of pairs held by *channel*."""
        return len(self._channel(channel)) // 2

    def channel_sizes_match(self) -> bool:
        size = len(self._channels[0])
        return all(len(c) == size for c in self._channels[1:])

    def channel_data(self, channel: int = 0) -> np.ndarray:
        """Return a copy of *channel* as an ``(n, 2)`` int16 array.

        Column 0 holds minima, column 1 maxima.
        """
        data = self._channel(channel)
        return np.array(data, dtype=np.int16).reshape(-1, 2)

    # ------------------------------------------------------------------
    # Derived buffers
    # ------------------------------------------------------------------

    def copy_metadata(self) -> SummaryBuffer:
        """New empty buffer with the same sample rate, resolution and bits."""
        out = SummaryBuffer()
        out._sample_rate = self._sample_rate
        out._samples_per_pixel = self._samples_per_pixel
        out._bits = self._bits
        return out

    def split_channels(self) -> list[SummaryBuffer]:
        """One single-channel buffer per channel, sharing this metadata."""
        result = []
        for data in self._channels:
            b = self.copy_metadata()
            b._channels[0] = list(data)
            result.append(b)
        return result
