"""
JSON-based configuration for mesh_volume.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (dataclass field defaults)
2. User config (~/.meshvol.json)
3. Project config (./.meshvol.json or next to the STL file)
4. CLI arguments

Example .meshvol.json:
{
    "engine": {
        "dedup_tolerance": 1e-6
    },
    "limits": {
        "max_file_bytes": 104857600
    },
    "logging": {
        "level": "INFO",
        "json_file": "mesh_volume.log.json",
        "use_colors": true
    },
    "output": {
        "format": "text",
        "decimals": 3
    }
}
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mesh_volume.geometry.mesh import DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".meshvol.json"

OUTPUT_FORMATS = ("text", "json")


@dataclass
class EngineConfig:
    """Geometry engine settings."""
    dedup_tolerance: float = DEFAULT_TOLERANCE


@dataclass
class LimitsConfig:
    """Input limits enforced before a file is read."""
    max_file_bytes: Optional[int] = 100 * 1024 * 1024  # None = unlimited


@dataclass
class LoggingConfig:
    """Log output settings."""
    level: str = "INFO"
    json_file: Optional[str] = None
    use_colors: bool = True


@dataclass
class OutputConfig:
    """Result presentation (CLI and batch reports only)."""
    format: str = "text"
    decimals: int = 3


@dataclass
class ProjectConfig:
    """Complete configuration."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> 'ProjectConfig':
        """Check value ranges.

        Returns:
            self, for chaining

        Raises:
            ValueError: on the first invalid value
        """
        tol = self.engine.dedup_tolerance
        if not isinstance(tol, (int, float)) or not math.isfinite(tol) or tol <= 0:
            raise ValueError(f"engine.dedup_tolerance must be positive, got {tol!r}")

        limit = self.limits.max_file_bytes
        if limit is not None and (not isinstance(limit, int) or limit <= 0):
            raise ValueError(f"limits.max_file_bytes must be a positive integer, got {limit!r}")

        if self.output.format not in OUTPUT_FORMATS:
            raise ValueError(f"output.format must be one of {OUTPUT_FORMATS}, "
                             f"got {self.output.format!r}")

        if not isinstance(self.output.decimals, int) or self.output.decimals < 0:
            raise ValueError(f"output.decimals must be >= 0, got {self.output.decimals!r}")

        if not isinstance(logging.getLevelName(str(self.logging.level).upper()), int):
            raise ValueError(f"logging.level is not a log level: {self.logging.level!r}")

        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        path.write_text(self.to_json(), encoding='utf-8')
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown sections and keys are ignored.
        """
        config = cls()
        for section in fields(cls):
            values = data.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.debug("Ignoring unknown config key %s.%s", section.name, key)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        config = cls.from_json(path.read_text(encoding='utf-8'))
        logger.info("Configuration loaded from %s", path)
        return config


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find configuration file using search hierarchy.

    Search order:
    1. Explicit config path (if provided)
    2. .meshvol.json in the STL file's directory
    3. .meshvol.json in the current working directory
    4. ~/.meshvol.json

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        stl_path = Path(stl_path)
        stl_dir = stl_path if stl_path.is_dir() else stl_path.parent
        candidates.append(stl_dir / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    A config file that cannot be parsed is logged and the defaults are used.
    A file that parses but holds invalid values raises.

    Raises:
        ValueError: if the loaded configuration fails validation
    """
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path).validate()
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations, with override taking precedence.

    Only values of ``override`` that differ from the built-in defaults are
    applied.
    """
    merged = ProjectConfig.from_dict(base.to_dict())
    defaults = ProjectConfig()

    for section in fields(ProjectConfig):
        default_section = getattr(defaults, section.name)
        merged_section = getattr(merged, section.name)
        for key, value in asdict(getattr(override, section.name)).items():
            if value != getattr(default_section, key):
                setattr(merged_section, key, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Write a documented sample configuration file."""
    sample = {
        "_comment": "STL mesh volume engine configuration",
        "_version": "1.0",
        "engine": {
            "_comment": "Vertices closer than dedup_tolerance per axis are merged",
            "dedup_tolerance": DEFAULT_TOLERANCE,
        },
        "limits": {
            "_comment": "Files above max_file_bytes are rejected unread (null = no limit)",
            "max_file_bytes": LimitsConfig.max_file_bytes,
        },
        "logging": {
            "level": "INFO",
            "json_file": None,
            "use_colors": True,
        },
        "output": {
            "_comment": "format: text or json",
            "format": "text",
            "decimals": 3,
        },
    }

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
