"""
Configuration for ssdface.

Layers, highest wins: CLI overrides (applied by the caller) > SSDFACE_*
environment variables > YAML file > dataclass defaults. With no file and
no environment the defaults describe the stock res10 SSD face model.

Blob geometry and the confidence threshold belong to the trained network;
change them only together with the model files.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Directory that relative paths in the config are anchored at."""
    return _PROJECT_ROOT


@dataclass(frozen=True)
class ModelConfig:
    """Artifact locations and the blob parameters the network was trained with."""

    prototxt_path: str = "models/deploy.prototxt.txt"
    weights_path: str = "models/res10_300x300_ssd_iter_140000_fp16.caffemodel"
    backend: str = "cpu"
    input_size: Tuple[int, int] = (300, 300)
    mean_values: Tuple[float, float, float] = (104.0, 177.0, 123.0)
    scale_factor: float = 1.0


@dataclass(frozen=True)
class DetectionConfig:
    # Strictly-greater-than cutoff on the row confidence.
    confidence_threshold: float = 0.8


@dataclass(frozen=True)
class AssetConfig:
    """Asset server used when an artifact is not on disk (base_url None: never fetch)."""

    base_url: Optional[str] = None
    cache_dir: str = "models/.cache"
    timeout: float = 30.0


@dataclass(frozen=True)
class InputConfig:
    source: str = "0"
    resize_width: Optional[int] = None


@dataclass(frozen=True)
class OutputConfig:
    # Comma-separated subset of VALID_OUTPUT_MODES.
    mode: str = "log"
    save_path: str = "output/"


@dataclass(frozen=True)
class AppConfig:
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_VALID_BACKENDS = {"cpu", "cuda"}
VALID_OUTPUT_MODES = {"log", "save_json", "save_csv", "save_screenshot"}


def parse_modes(mode: str) -> set:
    """Split a comma-separated mode string into a set of mode names."""
    return {m.strip() for m in mode.split(",") if m.strip()}


def validate(config: AppConfig) -> None:
    """Raise ValueError naming the first invalid setting."""
    model = config.model
    checks = [
        (model.backend in _VALID_BACKENDS,
         f"model.backend must be one of {sorted(_VALID_BACKENDS)}, got '{model.backend}'"),
        (not parse_modes(config.output.mode) - VALID_OUTPUT_MODES,
         f"output.mode has unknown entries in '{config.output.mode}'; "
         f"valid: {sorted(VALID_OUTPUT_MODES)}"),
        (0.0 <= config.detection.confidence_threshold <= 1.0,
         f"detection.confidence_threshold must be in [0, 1], "
         f"got {config.detection.confidence_threshold}"),
        (len(model.input_size) == 2 and all(d > 0 for d in model.input_size),
         f"model.input_size must be two positive ints, got {model.input_size}"),
        (len(model.mean_values) == 3,
         f"model.mean_values needs one value per channel, got {model.mean_values}"),
        (model.scale_factor > 0,
         f"model.scale_factor must be positive, got {model.scale_factor}"),
        (config.assets.timeout > 0,
         f"assets.timeout must be positive, got {config.assets.timeout}"),
        (config.input.resize_width is None or config.input.resize_width > 0,
         f"input.resize_width must be positive or null, got {config.input.resize_width}"),
    ]
    for ok, message in checks:
        if not ok:
            raise ValueError(message)


# Coercion for values arriving as YAML scalars/lists or env strings.
_COERCE = {
    ("model", "backend"): lambda v: str(v).lower(),
    ("model", "input_size"): lambda v: tuple(int(x) for x in v),
    ("model", "mean_values"): lambda v: tuple(float(x) for x in v),
    ("model", "scale_factor"): float,
    ("detection", "confidence_threshold"): float,
    ("assets", "base_url"): lambda v: str(v).rstrip("/") if v else None,
    ("assets", "timeout"): float,
    ("input", "resize_width"): lambda v: int(v) if v not in (None, "") else None,
    ("output", "mode"): lambda v: str(v).lower(),
}


def _section(cls, name: str, raw: dict):
    """Build one config section, rejecting keys the dataclass doesn't define."""
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown key(s) in '{name}' section: {sorted(unknown)}")

    kwargs = {}
    for key, value in raw.items():
        coerce = _COERCE.get((name, key), str)
        kwargs[key] = coerce(value)
    return cls(**kwargs)


def _env_overrides() -> dict:
    """Collect SSDFACE_<SECTION>_<KEY> variables, e.g. SSDFACE_ASSETS_BASE_URL."""
    found: dict = {}
    for section in dataclasses.fields(AppConfig):
        for key in dataclasses.fields(section.default_factory):
            var = f"SSDFACE_{section.name}_{key.name}".upper()
            if var in os.environ:
                found.setdefault(section.name, {})[key.name] = os.environ[var]
                logger.debug("Config override from env: %s", var)
    return found


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load, merge and validate the configuration.

    Raises:
        FileNotFoundError: If config_path is given but missing.
        ValueError: On unknown keys or invalid values.
        yaml.YAMLError: If the file is not valid YAML.
    """
    raw: dict = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.is_absolute():
            path = _PROJECT_ROOT / path
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        logger.info("Loading config from: %s", path)
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    for section, values in _env_overrides().items():
        raw.setdefault(section, {}).update(values)

    config = AppConfig(**{
        f.name: _section(f.default_factory, f.name, raw.get(f.name) or {})
        for f in dataclasses.fields(AppConfig)
    })
    validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
