"""
Measurement catalogue models.

The catalogue describes every pod and the measurements it exposes: physical
type, value format, operating limits, sampling period and noise level. It is
read-only input to a simulation run and is shared by all runs.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config_loader import ConfigurationError


class CatalogueError(ConfigurationError):
    """Raised when the measurement catalogue cannot be loaded or validated."""


class MeasurementFormat(str, Enum):
    """Value format of a measurement."""

    CONTINUOUS = "continuous"
    ENUM = "enum"


class LimitRange(BaseModel):
    """Inclusive value range."""

    model_config = ConfigDict(frozen=True)

    low: float
    high: float


class Limits(BaseModel):
    """Operating and critical limits of a measurement."""

    model_config = ConfigDict(frozen=True)

    normal: LimitRange
    critical: LimitRange


class Measurement(BaseModel):
    """A single channel in the catalogue."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Unique channel name, e.g. accelerometer_1")
    name: Optional[str] = Field(default=None, description="Human-readable name")
    format: MeasurementFormat = Field(default=MeasurementFormat.CONTINUOUS, description="Value format")
    type: str = Field(..., description="Physical sensor type, e.g. motion")
    unit: Optional[str] = Field(default=None, description="Unit of measurement")
    limits: Optional[Limits] = Field(default=None, description="Normal and critical limits")
    sampling_time: float = Field(..., description="Sampling period in milliseconds")
    rms_noise: float = Field(default=0.0, ge=0, description="RMS noise amplitude")
    enum: List[Dict[str, Any]] = Field(default_factory=list, description="Enum values for enum channels")

    @model_validator(mode="after")
    def check_limits(self) -> "Measurement":
        if self.format != MeasurementFormat.CONTINUOUS:
            return self
        if self.limits is None:
            raise ValueError(f"Continuous measurement '{self.key}' has no limits")
        critical = self.limits.critical
        normal = self.limits.normal
        if critical.low > critical.high:
            raise ValueError(
                f"Measurement '{self.key}' has inverted critical limits "
                f"({critical.low} > {critical.high})"
            )
        if not critical.low <= normal.low <= normal.high <= critical.high:
            raise ValueError(
                f"Measurement '{self.key}' limits must satisfy "
                f"critical.low <= normal.low <= normal.high <= critical.high"
            )
        return self

    @property
    def is_aggregate(self) -> bool:
        """True for average channels derived from sibling channels."""
        return self.key.endswith("avg")


class Pod(BaseModel):
    """A vehicle or pod and the measurements it exposes."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    measurements: Dict[str, Measurement] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_measurement_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("measurements"), dict):
            measurements = {}
            for key, value in data["measurements"].items():
                if isinstance(value, dict) and "key" not in value:
                    value = {**value, "key": key}
                measurements[key] = value
            data = {**data, "measurements": measurements}
        return data


class Catalogue(BaseModel):
    """All pods known to the simulator."""

    model_config = ConfigDict(frozen=True)

    pods: Dict[str, Pod] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_pod_ids(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("pods"), dict):
            pods = {}
            for pod_id, value in data["pods"].items():
                if isinstance(value, dict) and "id" not in value:
                    value = {**value, "id": pod_id}
                pods[pod_id] = value
            data = {**data, "pods": pods}
        return data

    @model_validator(mode="after")
    def validate_unique_channels(self) -> "Catalogue":
        """Channel names identify a channel across all pods."""
        owners: Dict[str, str] = {}
        for pod_id, pod in self.pods.items():
            for key in pod.measurements:
                if key in owners:
                    raise ValueError(
                        f"Channel '{key}' is declared by both pod '{owners[key]}' and pod '{pod_id}'"
                    )
                owners[key] = pod_id
        return self

    def measurements(self) -> Dict[str, Measurement]:
        """Return every simulated (non-enum) measurement across all pods."""
        result: Dict[str, Measurement] = {}
        for pod in self.pods.values():
            for key, measurement in pod.measurements.items():
                if measurement.format == MeasurementFormat.ENUM:
                    continue
                result[key] = measurement
        return result

    def channel(self, name: str) -> Measurement:
        """Look up a channel by name, enum channels included."""
        for pod in self.pods.values():
            if name in pod.measurements:
                return pod.measurements[name]
        raise KeyError(name)


def catalogue_from_dict(data: Dict[str, Any]) -> Catalogue:
    """
    Build a validated catalogue from plain data.

    Raises:
        CatalogueError: If any measurement fails validation
    """
    try:
        return Catalogue(**data)
    except ValidationError as e:
        raise CatalogueError(f"Catalogue validation failed: {e}") from e


def load_catalogue(path: Path) -> Catalogue:
    """
    Load a measurement catalogue from a YAML file.

    Args:
        path: Path to the catalogue file

    Returns:
        Validated Catalogue instance

    Raises:
        CatalogueError: If the file cannot be read, parsed or validated
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise CatalogueError(f"Failed to parse catalogue YAML: {e}") from e
    except OSError as e:
        raise CatalogueError(f"Failed to read catalogue file: {e}") from e

    return catalogue_from_dict(data)
