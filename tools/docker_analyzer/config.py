"""Analyzer configuration and settings files."""

import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from shared.logger import get_logger

logger = get_logger(__name__)

# Reduction estimates never exceed this percentage
SIZE_REDUCTION_CEILING = 80


class ConfigError(ValueError):
    """Raised when a settings file cannot be used."""


@dataclass
class AnalyzerConfig:
    """
    Configuration for Dockerfile analysis.

    Attributes:
        deduplicate_optimizations: Drop repeated optimization suggestions
        image_report_has_issues: Report hasIssues=True for image-only reports
            (the legacy behavior reports False despite the informational issue)
        assumed_original_size_mb: Assumed size of the unoptimized image
        max_file_size_mb: Largest Dockerfile accepted by analyze_file
        max_size_reduction_percent: Cap on the estimated size reduction (at most 80)
    """

    deduplicate_optimizations: bool = False
    image_report_has_issues: bool = False
    assumed_original_size_mb: int = 1200
    max_file_size_mb: float = 100.0
    max_size_reduction_percent: int = 80

    def __post_init__(self):
        if self.assumed_original_size_mb <= 0:
            raise ConfigError("assumed_original_size_mb must be positive")
        if self.max_file_size_mb <= 0:
            raise ConfigError("max_file_size_mb must be positive")
        if not 0 <= self.max_size_reduction_percent <= SIZE_REDUCTION_CEILING:
            raise ConfigError(
                f"max_size_reduction_percent must be between 0 and {SIZE_REDUCTION_CEILING}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Get settings keyed by their camelCase names."""
        return {_camel(name): value for name, value in asdict(self).items()}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_FIELD_TYPES = {f.name: f.type for f in fields(AnalyzerConfig)}
_ALIASES = {_camel(name): name for name in _FIELD_TYPES}
_EXPECTED = {"bool": (bool,), "int": (int,), "float": (int, float)}


def config_from_dict(data: Dict[str, Any]) -> AnalyzerConfig:
    """
    Build a config from a settings mapping.

    Keys may be snake_case or camelCase. Unknown keys are ignored with a
    warning.

    Raises:
        ConfigError: If a value has the wrong type
    """
    values: Dict[str, Any] = {}

    for key, value in data.items():
        name = _ALIASES.get(key, key)
        if name not in _FIELD_TYPES:
            logger.warning(f"Ignoring unknown setting: {key}")
            continue

        type_name = _FIELD_TYPES[name]
        type_name = type_name if isinstance(type_name, str) else type_name.__name__
        expected = _EXPECTED[type_name]
        if not isinstance(value, expected) or (type_name != "bool" and isinstance(value, bool)):
            raise ConfigError(f"Setting {key} must be of type {type_name}, got {value!r}")
        values[name] = value

    return AnalyzerConfig(**values)


def load_config(path: Path) -> AnalyzerConfig:
    """
    Load a JSON settings file.

    Args:
        path: Path to the settings file

    Returns:
        AnalyzerConfig

    Raises:
        ConfigError: If the file is unreadable or invalid
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in settings file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")

    # Written by save_config, not a setting
    data.pop("exportDate", None)

    logger.debug(f"Loaded settings from {path}")
    return config_from_dict(data)


def save_config(config: AnalyzerConfig, path: Path) -> Path:
    """
    Write settings as JSON, stamped with the export date.

    Returns:
        Path written
    """
    path = Path(path)
    data = config.to_dict()
    data["exportDate"] = datetime.now(timezone.utc).isoformat()
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info(f"Settings saved to {path}")
    return path
