from __future__ import annotations

from wavesummarylib.models import SummaryBuffer


def make_buffer(channels, sample_rate=44100, samples_per_pixel=256, bits=16):
    """Build a buffer from a list of per-channel ``[(min, max), ...]`` lists."""
    buffer = SummaryBuffer()
    buffer.sample_rate = sample_rate
    buffer.samples_per_pixel = samples_per_pixel
    buffer.bits = bits
    for chan, channel_pairs in enumerate(channels):
        buffer.ensure_channel(chan)
        for lo, hi in channel_pairs:
            buffer.append(lo, hi, chan)
    return buffer


def pairs(buffer, channel=0):
    return [tuple(p) for p in buffer.channel_data(channel).tolist()]


def reference_summary(samples, samples_per_pixel):
    """Per-window (min, max), computed one window at a time."""
    samples = [int(s) for s in samples]
    return [
        (min(samples[i:i + samples_per_pixel]), max(samples[i:i + samples_per_pixel]))
        for i in range(0, len(samples), samples_per_pixel)
    ]
