from __future__ import annotations

import logging
from dataclasses import dataclass

import soundfile as sf

from .errors import WaveformIOError
from .generator import WaveformGenerator

log = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".flac", ".ogg", ".oga", ".aif", ".aiff", ".mp3")

DEFAULT_BLOCK_SIZE = 4096


@dataclass
class AudioInfo:
    samplerate: int
    channels: int
    frames: int
    duration_sec: float


def format_duration(samples: int, samplerate: int) -> str:
    if samplerate <= 0:
        return "00:00.000"
    seconds = samples / samplerate
    m = int(seconds // 60)
    s = int(seconds % 60)
    ms = int((seconds % 1) * 1000)
    return f"{m:02d}:{s:02d}.{ms:03d}"


def is_audio_file(path: str) -> bool:
    return path.lower().endswith(AUDIO_EXTENSIONS)


def read_audio_info(filepath: str) -> AudioInfo:
    """Stream parameters of an audio file, without decoding it."""
    try:
        info = sf.info(filepath)
    except (sf.LibsndfileError, OSError) as e:
        raise WaveformIOError(f"Failed to read audio file: {e}", filepath) from e
    return AudioInfo(
        samplerate=info.samplerate,
        channels=info.channels,
        frames=info.frames,
        duration_sec=info.duration,
    )


def generate_from_file(
    filepath: str,
    generator: WaveformGenerator,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> None:
    """Decode *filepath* and stream it through *generator*.

    libsndfile converts every input format to interleaved signed 16-bit
    frames, which are fed to the generator in blocks of *block_size*.
    """
    log.info("Input file: %s", filepath)
    try:
        with sf.SoundFile(filepath) as f:
            log.debug("Sample rate: %d Hz, channels: %d, frames: %d",
                      f.samplerate, f.channels, f.frames)
            generator.init(f.samplerate, f.channels)
            for block in f.blocks(blocksize=block_size, dtype="int16",
                                  always_2d=True):
                generator.process(block)
    except (sf.LibsndfileError, OSError) as e:
        raise WaveformIOError(f"Failed to read audio file: {e}", filepath) from e
    generator.done()
