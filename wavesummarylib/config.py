from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError

PRESET_SCHEMA_VERSION = "1.0"


class ConfigError(ValidationError):
    """Raised when configuration validation fails."""
    pass


@dataclass
class ConfigFieldError:
    """A single validation error for one configuration field.

    Attributes:
        key:     The config key that failed validation.
        value:   The offending value.
        message: Human-readable explanation of what is wrong.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declarative specification for a single configuration parameter."""
    key: str
    type: type | tuple              # expected Python type(s)
    default: Any
    label: str                       # short label used in messages
    description: str = ""            # longer help text
    min: float | int | None = None   # inclusive lower bound (unless min_exclusive)
    max: float | int | None = None   # inclusive upper bound (unless max_exclusive)
    min_exclusive: bool = False
    max_exclusive: bool = False
    choices: list | None = None      # allowed values of the same type
    nullable: bool = False           # True if None is valid


def default_config() -> dict[str, Any]:
    """Returns the built-in default configuration."""
    return {p.key: p.default for p in WAVEFORM_PARAMS}


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple config dicts left-to-right.

    Later values override earlier ones. ``None`` values never override,
    so unset CLI options leave preset and default values in place.
    """
    result: dict[str, Any] = {}
    for cfg in configs:
        for k, v in cfg.items():
            if v is None and k in result:
                continue
            result[k] = v
    return result


def load_preset(path: str) -> dict[str, Any]:
    """
    Load a JSON preset file. Returns a partial config dict.
    Raises ConfigError if the file cannot be read or parsed.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Preset file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in preset file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read preset file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Preset file must contain a JSON object, got {type(data).__name__}")

    # Metadata keys are informational, not config
    preset = {k: v for k, v in data.items() if k not in ("schema_version", "_description")}
    return preset


def save_preset(config: dict[str, Any], path: str, *, description: str | None = None) -> None:
    """
    Save a config dict as a JSON preset file.
    Only waveform parameters that differ from their defaults are saved.
    """
    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description

    defaults = default_config()
    for k, v in config.items():
        if k not in defaults or defaults[k] == v:
            continue
        preset[k] = v

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset, f, indent=4, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

WAVEFORM_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="samples_per_pixel", type=(int, str), default=None, min=2,
        choices=["auto"], nullable=True,
        label="Zoom (samples per pixel)",
        description=(
            "Number of input frames summarised by one output point. "
            "'auto' fits the whole input into 'width' pixels. "
            "Defaults to 256 when no other resolution is given."
        ),
    ),
    ParamSpec(
        key="pixels_per_second", type=int, default=None, min=1, nullable=True,
        label="Pixels per second",
        description="Resolution as output points per second of audio.",
    ),
    ParamSpec(
        key="start", type=(int, float), default=0.0, min=0.0,
        label="Start time (s)",
        description="Start of the time window used with 'end'.",
    ),
    ParamSpec(
        key="end", type=(int, float), default=None, min=0.0, nullable=True,
        label="End time (s)",
        description="End of the time window fitted into 'width' pixels.",
    ),
    ParamSpec(
        key="width", type=int, default=800, min=1,
        label="Width (pixels)",
        description="Target width for 'end' and automatic zoom.",
    ),
    ParamSpec(
        key="bits", type=int, default=None, choices=[8, 16], nullable=True,
        label="Bits",
        description=(
            "Output resolution. Defaults to 16 for generated data and to "
            "the input resolution for conversions."
        ),
    ),
    ParamSpec(
        key="file_version", type=int, default=1, choices=[1, 2],
        label="File version",
        description=(
            "1 writes one file per channel; 2 writes all channels "
            "interleaved into one file."
        ),
    ),
    ParamSpec(
        key="mono", type=bool, default=True,
        label="Mix to mono",
        description="Average all input channels into a single channel.",
    ),
    ParamSpec(
        key="block_size", type=int, default=4096, min=1,
        label="Decode block size (frames)",
        description="Frames read from the audio decoder per block.",
    ),
]


# ---------------------------------------------------------------------------
# Validation  (ParamSpec-driven)
# ---------------------------------------------------------------------------

def validate_param_values(
    params: list[ParamSpec],
    values: dict[str, Any],
) -> list[ConfigFieldError]:
    """Validate *values* against a list of :class:`ParamSpec` definitions.

    Returns a (possibly empty) list of :class:`ConfigFieldError` objects.
    Only keys present in *values* are checked; missing keys are not errors
    (they will receive their default).
    """
    errors: list[ConfigFieldError] = []

    for spec in params:
        if spec.key not in values:
            continue

        value = values[spec.key]

        # -- nullable --
        if value is None:
            if spec.nullable:
                continue
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must not be empty.",
            ))
            continue

        # -- type (bool ⊄ int guard) --
        expected = spec.type
        if expected is not bool and isinstance(value, bool):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, got boolean.",
            ))
            continue
        if not isinstance(value, expected):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, "
                f"got {type(value).__name__}.",
            ))
            continue

        # -- choices (only among values of the same type) --
        if spec.choices is not None and value not in spec.choices:
            if any(isinstance(value, type(c)) for c in spec.choices):
                opts = ", ".join(repr(c) for c in spec.choices)
                errors.append(ConfigFieldError(
                    spec.key, value,
                    f"{spec.label} must be one of {opts}.",
                ))
                continue

        # -- numeric range --
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if spec.min is not None:
                if spec.min_exclusive and value <= spec.min:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be greater than {spec.min}.",
                    ))
                    continue
                if not spec.min_exclusive and value < spec.min:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be at least {spec.min}.",
                    ))
                    continue
            if spec.max is not None:
                if spec.max_exclusive and value >= spec.max:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be less than {spec.max}.",
                    ))
                    continue
                if not spec.max_exclusive and value > spec.max:
                    errors.append(ConfigFieldError(
                        spec.key, value,
                        f"{spec.label} must be at most {spec.max}.",
                    ))
                    continue

    return errors


def validate_config_fields(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Validate a config dict against :data:`WAVEFORM_PARAMS`.

    Returns structured errors.  Never raises.
    """
    return validate_param_values(WAVEFORM_PARAMS, config)


def validate_config(config: dict[str, Any]) -> None:
    """Validate a config dict.

    Raises :class:`ConfigError` listing every invalid field.
    """
    errors = validate_config_fields(config)
    if errors:
        lines = [e.message for e in errors]
        raise ConfigError(
            "Configuration has invalid values:\n  • " + "\n  • ".join(lines)
        )


def _type_label(t) -> str:
    """Human-readable label for an expected type or tuple of types."""
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__
