from __future__ import annotations

import logging

import numpy as np

from .errors import ValidationError, ZoomError
from .events import EventBus, emit
from .models import SummaryBuffer

log = logging.getLogger(__name__)


def rescale(
    source: SummaryBuffer,
    samples_per_pixel: int,
    event_bus: EventBus | None = None,
) -> SummaryBuffer:
    """Return a coarser copy of *source* at *samples_per_pixel*.

    Every ``samples_per_pixel // source.samples_per_pixel`` consecutive
    source pixels are merged into one output pixel holding the minimum of
    their minima and the maximum of their maxima. A trailing group shorter
    than that is merged as well. *source* is left untouched.

    Raises
    ------
    ZoomError
        If *samples_per_pixel* is finer than the source resolution.
    """
    input_spp = source.samples_per_pixel
    if input_spp < 2:
        raise ValidationError("Source buffer has no samples per pixel set")
    if samples_per_pixel < input_spp:
        raise ZoomError(
            f"Invalid zoom {samples_per_pixel}: insufficient input "
            f"resolution, minimum {input_spp}"
        )

    block = samples_per_pixel // input_spp
    output = source.copy_metadata()
    output.samples_per_pixel = samples_per_pixel

    for chan in range(source.num_channels):
        output.ensure_channel(chan)
        data = source.channel_data(chan)
        if data.shape[0] == 0:
            continue
        starts = np.arange(0, data.shape[0], block)
        mins = np.minimum.reduceat(data[:, 0], starts)
        maxs = np.maximum.reduceat(data[:, 1], starts)
        output.extend(mins, maxs, chan)

    log.debug("Rescaled %d -> %d samples per pixel (block %d)",
              input_spp, samples_per_pixel, block)
    emit(event_bus, "buffer.rescale",
         input_samples_per_pixel=input_spp,
         output_samples_per_pixel=samples_per_pixel,
         points=output.size())
    return output
