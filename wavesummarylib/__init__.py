from ._version import __version__
from .errors import (
    WaveformError,
    ValidationError,
    OutOfRangeError,
    FormatError,
    ZoomError,
    InvalidStateError,
    WaveformIOError,
)
from .models import FileVersion, GeneratorState, SummaryBuffer
from .scale import ScaleFactor, ScaleFactorKind, create_scale_factor
from .generator import WaveformGenerator
from .rescaler import rescale
from .formats import (
    FileExporter,
    DatFileExporter,
    JsonFileExporter,
    TxtFileExporter,
    exporter_for,
    load_buffer,
    read_dat,
    read_json,
)
from .audio import generate_from_file, read_audio_info
from .config import (
    default_config,
    merge_configs,
    validate_config,
    validate_config_fields,
    load_preset,
    save_preset,
    ConfigError,
    ParamSpec,
    WAVEFORM_PARAMS,
)
from .pipeline import Pipeline
from .events import EventBus

__all__ = [
    "__version__",
    "WaveformError",
    "ValidationError",
    "OutOfRangeError",
    "FormatError",
    "ZoomError",
    "InvalidStateError",
    "WaveformIOError",
    "FileVersion",
    "GeneratorState",
    "SummaryBuffer",
    "ScaleFactor",
    "ScaleFactorKind",
    "create_scale_factor",
    "WaveformGenerator",
    "rescale",
    "FileExporter",
    "DatFileExporter",
    "JsonFileExporter",
    "TxtFileExporter",
    "exporter_for",
    "load_buffer",
    "read_dat",
    "read_json",
    "generate_from_file",
    "read_audio_info",
    "default_config",
    "merge_configs",
    "validate_config",
    "validate_config_fields",
    "load_preset",
    "save_preset",
    "ConfigError",
    "ParamSpec",
    "WAVEFORM_PARAMS",
    "Pipeline",
    "EventBus",
]
