"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from .config_models import SystemConfig

DEFAULT_CONFIG_PATH = Path("config/config.yml")

# Environment variable -> location in the configuration tree
ENV_OVERRIDES: Dict[str, Tuple[str, ...]] = {
    "PODSIM_LOG_LEVEL": ("logging", "level"),
    "PODSIM_LOG_DIR": ("paths", "log_dir"),
    "PODSIM_OUTPUT_DIR": ("paths", "output_dir"),
    "PODSIM_CATALOGUE": ("catalogue_path",),
    "PODSIM_SEED": ("simulation", "seed"),
    "PODSIM_DURATION_MS": ("simulation", "duration_ms"),
    "PODSIM_RANDOM_MODE": ("simulation", "random_mode"),
}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load the system configuration.

    A missing file is not an error: defaults apply, still subject to the
    ``PODSIM_*`` environment overrides.

    Args:
        config_path: YAML file to read, config/config.yml by default

    Raises:
        ConfigurationError: If the file cannot be parsed or the merged
            configuration is invalid
    """
    path = config_path or DEFAULT_CONFIG_PATH
    data = _read_yaml(path) if path.exists() else {}

    for env_var, location in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            _set_nested(data, location, value)

    try:
        return SystemConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML config {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _set_nested(data: Dict[str, Any], location: Tuple[str, ...], value: Any) -> None:
    """Set data[a][b]... = value, creating intermediate sections as needed."""
    *sections, leaf = location
    for section in sections:
        child = data.get(section)
        if not isinstance(child, dict):
            child = data[section] = {}
        data = child
    data[leaf] = value


def create_example_config(output_path: Path = Path("config/config.yml.example")) -> None:
    """Create an example configuration file."""
    example_config = {
        "catalogue_path": "config/catalogue.yml",
        "simulation": {
            "seed": 42,
            "duration_ms": 30000,
            "random_mode": False,
            "motion": {
                "growth_rate": 0.4,
                "inflection_time": 12.5,
                "max_acceleration": 5.0,
                "steady_state_fraction": 0.95
            },
            "initial_values": {
                "ambient_temperature": 25.0,
                "power_line_resistance": 10.0,
                "reservoir_pressure": 5.0,
                "line_pressure": 1.0
            }
        },
        "paths": {
            "log_dir": "logs",
            "output_dir": "simulation_data"
        },
        "logging": {
            "level": "INFO"
        }
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
