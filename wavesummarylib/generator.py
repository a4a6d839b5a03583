"""Streaming min/max downsampler.

Each output pixel holds the minimum and maximum sample of a window of
``samples_per_pixel`` consecutive frames. The last window of a stream may
be shorter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .errors import InvalidStateError, ValidationError
from .events import EventBus, emit
from .models import SAMPLE_MAX, SAMPLE_MIN, GeneratorState, SummaryBuffer
from .scale import ScaleFactor

log = logging.getLogger(__name__)

MONO_CHANNEL = 0


@dataclass
class _Accumulator:
    """Running extremes of the current, not yet complete, window."""
    min: int = SAMPLE_MAX
    max: int = SAMPLE_MIN
    count: int = 0

    def reset(self) -> None:
        self.min = SAMPLE_MAX
        self.max = SAMPLE_MIN
        self.count = 0


def _mix_to_mono(frames: np.ndarray) -> np.ndarray:
    """Average the channels of each frame, truncating toward zero."""
    channels = frames.shape[1]
    total = frames.sum(axis=1)
    return np.sign(total) * (np.abs(total) // channels)


class WaveformGenerator:
    """Builds summary data into *buffer* from interleaved 16-bit PCM.

    Usage follows the decoder contract: :meth:`init` once with the stream
    parameters, :meth:`process` for every decoded block, :meth:`done` at
    end of stream.

    Parameters
    ----------
    buffer : SummaryBuffer
        Target buffer. Pairs are appended to it as windows complete.
    scale_factor : ScaleFactor
        Decides the window size from the stream sample rate.
    mono : bool
        Mix all input channels into a single output channel.
    event_bus : EventBus | None
        Receives ``generator.init`` and ``generator.done`` events.
    """

    def __init__(
        self,
        buffer: SummaryBuffer,
        scale_factor: ScaleFactor,
        mono: bool = False,
        event_bus: EventBus | None = None,
    ):
        self.buffer = buffer
        self.scale_factor = scale_factor
        self.mono = mono
        self.event_bus = event_bus
        self.state = GeneratorState.UNINITIALIZED
        self._channels = 0
        self._samples_per_pixel = 0
        self._accumulators: list[_Accumulator] = []

    @property
    def samples_per_pixel(self) -> int:
        return self._samples_per_pixel

    @property
    def input_channels(self) -> int:
        return self._channels

    def _require(self, state: GeneratorState, operation: str) -> None:
        if self.state is not state:
            raise InvalidStateError(
                f"Cannot {operation}: generator is {self.state.value}"
            )

    def init(self, sample_rate: int, channels: int) -> None:
        """Prepare for a stream of *channels* channels at *sample_rate* Hz."""
        self._require(GeneratorState.UNINITIALIZED, "init")

        if channels < 1 or channels > 2:
            raise ValidationError(
                "Can only generate waveform data from mono or stereo input files"
            )

        samples_per_pixel = self.scale_factor.samples_per_pixel_for(sample_rate)
        if samples_per_pixel < 2:
            raise ValidationError(
                f"Invalid zoom: {samples_per_pixel}, minimum 2"
            )

        self._channels = channels
        self._samples_per_pixel = samples_per_pixel
        output_channels = 1 if self.mono else channels
        self._accumulators = [_Accumulator() for _ in range(output_channels)]

        self.buffer.sample_rate = sample_rate
        self.buffer.samples_per_pixel = samples_per_pixel
        self.buffer.ensure_channel(output_channels - 1)

        self.state = GeneratorState.RUNNING
        log.info("Generating waveform data: %d samples per pixel, "
                 "%d input channel(s)", samples_per_pixel, channels)
        emit(self.event_bus, "generator.init",
             sample_rate=sample_rate,
             channels=channels,
             samples_per_pixel=samples_per_pixel,
             mono=self.mono)

    def process(self, block) -> None:
        """Consume one block of interleaved signed 16-bit samples.

        *block* is either flat and frame-major (``L0 R0 L1 R1 ...``) or
        shaped ``(frames, channels)``.
        """
        self._require(GeneratorState.RUNNING, "process")
        frames = self._as_frames(block)
        if frames.shape[0] == 0:
            return

        if self.mono:
            mixed = np.clip(_mix_to_mono(frames), SAMPLE_MIN, SAMPLE_MAX)
            self._feed(MONO_CHANNEL, mixed)
        else:
            for chan in range(self._channels):
                values = np.clip(frames[:, chan], SAMPLE_MIN, SAMPLE_MAX)
                self._feed(chan, values)

    def done(self) -> None:
        """Flush partially filled windows and finish the stream."""
        self._require(GeneratorState.RUNNING, "finish")
        for chan, acc in enumerate(self._accumulators):
            if acc.count > 0:
                self._flush(chan, acc)
        self.state = GeneratorState.DONE

        sizes = [self.buffer.size(c) for c in range(len(self._accumulators))]
        for chan, size in enumerate(sizes):
            log.info("(channel %d) Generated %d points", chan + 1, size)
        emit(self.event_bus, "generator.done", points=sizes)

    # ------------------------------------------------------------------

    def _as_frames(self, block) -> np.ndarray:
        arr = np.asarray(block)
        if arr.dtype.kind not in "iu":
            raise ValidationError(
                f"Expected integer PCM samples, got {arr.dtype}"
            )
        arr = arr.astype(np.int64, copy=False)
        if arr.ndim == 1:
            if arr.size % self._channels:
                raise ValidationError(
                    f"Block of {arr.size} samples is not a whole number "
                    f"of {self._channels}-channel frames"
                )
            return arr.reshape(-1, self._channels)
        if arr.ndim == 2 and arr.shape[1] == self._channels:
            return arr
        raise ValidationError(
            f"Expected frames of {self._channels} channel(s), "
            f"got array of shape {arr.shape}"
        )

    def _flush(self, chan: int, acc: _Accumulator) -> None:
        self.buffer.append(acc.min, acc.max, chan)
        acc.reset()

    def _feed(self, chan: int, values: np.ndarray) -> None:
        """Accumulate *values* into channel *chan*, appending every window
        that completes."""
        acc = self._accumulators[chan]
        spp = self._samples_per_pixel
        pos = 0

        # Complete the window left open by the previous block
        if acc.count:
            head = values[:spp - acc.count]
            acc.min = min(acc.min, int(head.min()))
            acc.max = max(acc.max, int(head.max()))
            acc.count += head.size
            pos = head.size
            if acc.count == spp:
                self._flush(chan, acc)

        rest = values[pos:]
        whole = (rest.size // spp) * spp
        if whole:
            windows = rest[:whole].reshape(-1, spp)
            self.buffer.extend(windows.min(axis=1), windows.max(axis=1), chan)

        tail = rest[whole:]
        if tail.size:
            acc.min = min(acc.min, int(tail.min()))
            acc.max = max(acc.max, int(tail.max()))
            acc.count += tail.size
