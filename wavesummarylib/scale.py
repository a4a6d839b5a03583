"""Target resolution (samples per pixel) for summary data generation.

A :class:`ScaleFactor` holds exactly one of three intents and turns it into
a samples-per-pixel value once the stream's sample rate is known:

* ``SAMPLES_PER_PIXEL``: a fixed resolution, independent of sample rate.
* ``DURATION``: fit the time range ``start..end`` into ``width`` pixels.
* ``PIXELS_PER_SECOND``: a fixed number of pixels per second of audio.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ValidationError

DEFAULT_SAMPLES_PER_PIXEL = 256
DEFAULT_WIDTH = 800


class ScaleFactorKind(Enum):
    SAMPLES_PER_PIXEL = "samples_per_pixel"
    DURATION = "duration"
    PIXELS_PER_SECOND = "pixels_per_second"


@dataclass(frozen=True)
class ScaleFactor:
    """Immutable, validated scale factor. Build with the class methods."""
    kind: ScaleFactorKind
    samples_per_pixel: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    width_pixels: int = 0
    pixels_per_second: int = 0

    def __post_init__(self) -> None:
        if self.kind is ScaleFactorKind.SAMPLES_PER_PIXEL:
            if self.samples_per_pixel < 2:
                raise ValidationError(
                    f"Invalid zoom: {self.samples_per_pixel}, minimum 2"
                )
        elif self.kind is ScaleFactorKind.DURATION:
            if self.end_time < self.start_time:
                raise ValidationError(
                    f"Invalid end time, must be greater than {self.start_time}"
                )
            if self.width_pixels < 1:
                raise ValidationError("Invalid image width: minimum 1")
        elif self.kind is ScaleFactorKind.PIXELS_PER_SECOND:
            if self.pixels_per_second <= 0:
                raise ValidationError(
                    "Invalid pixels per second: must be greater than zero"
                )
        else:
            raise ValidationError(f"Unknown scale factor kind: {self.kind!r}")

    @classmethod
    def fixed(cls, samples_per_pixel: int) -> ScaleFactor:
        return cls(ScaleFactorKind.SAMPLES_PER_PIXEL,
                   samples_per_pixel=int(samples_per_pixel))

    @classmethod
    def duration(cls, start_time: float, end_time: float,
                 width_pixels: int) -> ScaleFactor:
        return cls(ScaleFactorKind.DURATION,
                   start_time=float(start_time),
                   end_time=float(end_time),
                   width_pixels=int(width_pixels))

    @classmethod
    def per_second(cls, pixels_per_second: int) -> ScaleFactor:
        return cls(ScaleFactorKind.PIXELS_PER_SECOND,
                   pixels_per_second=int(pixels_per_second))

    def samples_per_pixel_for(self, sample_rate: int) -> int:
        """Samples per pixel for a stream at *sample_rate* Hz.

        The result is not range-checked here; callers reject values
        below 2.
        """
        if self.kind is ScaleFactorKind.SAMPLES_PER_PIXEL:
            return self.samples_per_pixel
        if self.kind is ScaleFactorKind.DURATION:
            seconds = self.end_time - self.start_time
            width_samples = math.floor(seconds * sample_rate)
            return width_samples // self.width_pixels
        if self.kind is ScaleFactorKind.PIXELS_PER_SECOND:
            return sample_rate // self.pixels_per_second
        raise ValidationError(f"Unknown scale factor kind: {self.kind!r}")


def create_scale_factor(
    config: dict[str, Any],
    duration: float | None = None,
) -> ScaleFactor:
    """Build the single scale factor requested by *config*.

    ``samples_per_pixel="auto"`` fits the whole *duration* (seconds) into
    ``width`` pixels.

    Raises
    ------
    ValidationError
        If contradictory intents are given (zoom or pixels-per-second
        together with an end time, or zoom together with
        pixels-per-second), or auto zoom is requested without a duration.
    """
    spp = config.get("samples_per_pixel")
    pps = config.get("pixels_per_second")
    end = config.get("end")
    start = config.get("start") or 0.0
    width = config.get("width") or DEFAULT_WIDTH

    if (spp is not None or pps is not None) and end is not None:
        raise ValidationError(
            "Specify either end time or zoom level, but not both"
        )
    if spp is not None and pps is not None:
        raise ValidationError(
            "Specify either zoom or pixels per second, but not both"
        )

    if end is not None:
        return ScaleFactor.duration(start, end, width)
    if pps is not None:
        return ScaleFactor.per_second(pps)
    if spp == "auto":
        if duration is None:
            raise ValidationError(
                "Automatic zoom needs the audio duration"
            )
        return ScaleFactor.duration(0.0, duration, width)
    if spp is None:
        spp = DEFAULT_SAMPLES_PER_PIXEL
    return ScaleFactor.fixed(spp)
