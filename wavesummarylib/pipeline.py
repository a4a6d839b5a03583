from __future__ import annotations

import logging
import os
from typing import Any

from .audio import (
    DEFAULT_BLOCK_SIZE,
    generate_from_file,
    is_audio_file,
    read_audio_info,
)
from .config import default_config, merge_configs, validate_config
from .errors import ValidationError, ZoomError
from .events import EventBus
from .formats import DATA_EXTENSIONS, EXPORTERS, exporter_for, load_buffer
from .generator import WaveformGenerator
from .models import SummaryBuffer
from .rescaler import rescale
from .scale import ScaleFactor, create_scale_factor

log = logging.getLogger(__name__)


def _is_data_file(path: str) -> bool:
    return path.lower().endswith(DATA_EXTENSIONS)


class Pipeline:
    """End-to-end summary data operations driven by one config dict.

    The config is merged over :func:`default_config` and validated when
    the pipeline is built, so a pipeline that constructs successfully only
    fails later on input data or I/O.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = merge_configs(default_config(), config or {})
        self.event_bus = event_bus
        validate_config(self.config)

        # Contradictory resolution options are rejected up front; automatic
        # zoom needs a duration and is resolved per input.
        self._auto_zoom = self.config.get("samples_per_pixel") == "auto"
        scale_factor = create_scale_factor(self.config, duration=0.0)
        self.scale_factor: ScaleFactor | None = (
            None if self._auto_zoom else scale_factor
        )

    def _scale_factor_for(self, duration: float) -> ScaleFactor:
        if self.scale_factor is not None:
            return self.scale_factor
        return create_scale_factor(self.config, duration=duration)

    # ------------------------------------------------------------------
    # Producing buffers
    # ------------------------------------------------------------------

    def generate(self, audio_path: str) -> SummaryBuffer:
        """Decode *audio_path* and summarise it into a new buffer."""
        duration = 0.0
        if self._auto_zoom:
            info = read_audio_info(audio_path)
            duration = info.duration_sec
            log.info("Duration: %g seconds", duration)

        buffer = SummaryBuffer()
        generator = WaveformGenerator(
            buffer,
            self._scale_factor_for(duration),
            mono=bool(self.config.get("mono", True)),
            event_bus=self.event_bus,
        )
        generate_from_file(
            audio_path, generator,
            block_size=self.config.get("block_size") or DEFAULT_BLOCK_SIZE,
        )
        return buffer

    def load(self, data_path: str) -> SummaryBuffer:
        """Read a ``.dat`` or ``.json`` summary file into a new buffer."""
        return load_buffer(
            data_path,
            mono=bool(self.config.get("mono", True)),
            event_bus=self.event_bus,
        )

    def read_input(self, input_path: str) -> SummaryBuffer:
        """Load summary data files, generate from anything else."""
        if _is_data_file(input_path):
            return self.load(input_path)
        return self.generate(input_path)

    def render_buffer(self, buffer: SummaryBuffer) -> SummaryBuffer:
        """Return *buffer* at the resolution requested by the config.

        This is the buffer handed to an image renderer: *buffer* itself
        when the resolutions are equal, a rescaled copy when the requested
        resolution is coarser.

        Raises
        ------
        ZoomError
            If the requested resolution is finer than *buffer* holds.
        """
        scale_factor = self._scale_factor_for(buffer.duration_sec)
        output_spp = scale_factor.samples_per_pixel_for(buffer.sample_rate)
        input_spp = buffer.samples_per_pixel

        if output_spp > input_spp:
            return rescale(buffer, output_spp, event_bus=self.event_bus)
        if output_spp < input_spp:
            raise ZoomError(f"Invalid zoom, minimum: {input_spp}")
        return buffer

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def export(
        self,
        buffer: SummaryBuffer,
        output_path: str,
        bits: int | None = None,
    ) -> list[str]:
        """Write *buffer* in the format implied by *output_path*.

        Configured bits take precedence over *bits*; with neither, the
        buffer's own bits are used.
        """
        exporter = exporter_for(
            output_path,
            bits=self.config.get("bits") or bits,
            version=self.config.get("file_version", 1),
            event_bus=self.event_bus,
        )
        return exporter.export(buffer, output_path)

    def check_conversion(self, input_path: str, output_path: str) -> None:
        """Raise :class:`ValidationError` unless *output_path* can be
        produced from *input_path*, judged by their file extensions."""
        output_ext = os.path.splitext(output_path)[1].lower()
        if output_ext not in EXPORTERS or not (
            is_audio_file(input_path) or _is_data_file(input_path)
        ):
            raise ValidationError(
                f"Can't generate {output_path} from {input_path}"
            )

    def run(self, input_path: str, output_path: str) -> list[str]:
        """Generate or convert summary data from *input_path* to
        *output_path*, choosing the operation from the file extensions.

        Returns the paths of the files written.
        """
        self.check_conversion(input_path, output_path)
        buffer = self.read_input(input_path)
        bits = None if _is_data_file(input_path) else 16
        return self.export(buffer, output_path, bits=bits)
