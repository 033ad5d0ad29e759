"""
Grouping of catalogue channels into sensor types and their initial readings.

Channels sharing a physical type are updated together by one sensor model and
share one sampling period.
"""

import re
from dataclasses import dataclass, field, replace
from statistics import fmean
from typing import Dict, List, Mapping

from podsim.catalogue import Measurement
from podsim.config_loader import ConfigurationError
from podsim.config_models import InitialValueSettings
from podsim.logging_config import get_logger

from .noise import NoiseModel
from .state_store import Snapshot

logger = get_logger(__name__)

_SUFFIX_PATTERN = re.compile(r"_[^_]*\d$")
_LINE_PRESSURE_PATTERN = re.compile(r"(push|pull|brake)(?!.*reservoir)")

ZERO_START_KEYS = frozenset({
    "accelerometer",
    "acceleration",
    "displacement",
    "hall_effect",
    "levitation_height",
    "keyence",
})


def base_key(key: str) -> str:
    """Strip the numbered suffix of a channel name, e.g. velocity_2 -> velocity."""
    return _SUFFIX_PATTERN.sub("", key)


def aggregate_base(key: str) -> str:
    """Base key an aggregate channel averages over, e.g. thermistor_avg -> thermistor."""
    return re.sub(r"_?avg$", "", key)


@dataclass(frozen=True)
class SensorTypeGroup:
    """Channels sharing a physical type and its update logic."""

    type: str
    channels: Dict[str, Measurement]
    sampling_period: float
    initial_readings: Dict[str, float] = field(default_factory=dict)

    @property
    def quantity(self) -> int:
        """Number of physical sensors, aggregate channels excluded."""
        return sum(1 for m in self.channels.values() if not m.is_aggregate)

    @property
    def base_keys(self) -> Dict[str, List[str]]:
        keys: Dict[str, List[str]] = {}
        for name, measurement in self.channels.items():
            if measurement.is_aggregate:
                continue
            keys.setdefault(base_key(name), []).append(name)
        return keys

    def siblings(self, aggregate: str) -> List[str]:
        """Non-aggregate channels an aggregate channel averages over."""
        target = aggregate_base(aggregate)
        matches = [
            name for name, m in self.channels.items()
            if not m.is_aggregate and base_key(name) == target
        ]
        if matches:
            return matches
        return [name for name, m in self.channels.items() if not m.is_aggregate]


class InitialValuePolicy:
    """Chooses the reading each channel starts a run with."""

    def __init__(self, settings: InitialValueSettings, noise: NoiseModel):
        self.settings = settings
        self.noise = noise

    def initial_value(self, measurement: Measurement) -> float:
        """
        Initial reading for a channel.

        Args:
            measurement: Catalogue entry of the channel

        Returns:
            Starting value, always within the channel's critical limits

        Raises:
            ConfigurationError: If a velocity channel would start at or below zero
        """
        key = measurement.key
        base = base_key(key)
        critical = measurement.limits.critical

        if base in ZERO_START_KEYS:
            value = 0.0
        elif base == "velocity":
            # The logistic profile needs a non-zero starting point
            value = critical.high * 0.1
            if value <= 0:
                raise ConfigurationError(
                    f"Velocity channel '{key}' needs a positive critical.high limit, got {critical.high}"
                )
        elif base == "thermistor":
            value = self.settings.ambient_temperature
        elif base == "power_line_resistance":
            value = self.settings.power_line_resistance
        elif key.endswith("reservoir"):
            value = self.settings.reservoir_pressure
        elif _LINE_PRESSURE_PATTERN.search(key):
            value = self.settings.line_pressure
        else:
            logger.warning(
                f"Unrecognised sensor '{key}' of type '{measurement.type}', starting from a random value",
                extra={"channel": key, "sensor_type": measurement.type}
            )
            return self.noise.uniform(critical.low, critical.high)

        clamped = self.noise.clamp(value, measurement.limits)
        if clamped != value:
            logger.debug(f"Initial value {value} of '{key}' clamped to {clamped}")
        return clamped


def group_measurements(measurements: Mapping[str, Measurement], policy: InitialValuePolicy) -> Dict[str, SensorTypeGroup]:
    """
    Group continuous measurements by sensor type and compute initial readings.

    Args:
        measurements: Simulated channels keyed by name
        policy: Initial value policy for the run

    Returns:
        Sensor type groups keyed by type tag, in catalogue order
    """
    by_type: Dict[str, Dict[str, Measurement]] = {}
    for name, measurement in measurements.items():
        by_type.setdefault(measurement.type, {})[name] = measurement

    groups: Dict[str, SensorTypeGroup] = {}
    for sensor_type, channels in by_type.items():
        periods = {m.sampling_time for m in channels.values()}
        period = min(periods)
        if len(periods) > 1:
            logger.warning(
                f"Sensor type '{sensor_type}' mixes sampling times {sorted(periods)}, using {period} ms"
            )

        readings: Dict[str, float] = {}
        for name, measurement in channels.items():
            if not measurement.is_aggregate:
                readings[name] = policy.initial_value(measurement)

        group = SensorTypeGroup(type=sensor_type, channels=channels, sampling_period=period)
        for name, measurement in channels.items():
            if measurement.is_aggregate:
                siblings = [readings[s] for s in group.siblings(name) if s in readings]
                value = fmean(siblings) if siblings else policy.initial_value(measurement)
                readings[name] = policy.noise.clamp(value, measurement.limits)

        group = replace(group, initial_readings={name: readings[name] for name in channels})
        groups[sensor_type] = group
        logger.debug(f"Sensor type '{sensor_type}': {group.quantity} sensor(s), period {period} ms")

    return groups


def initial_snapshot(groups: Mapping[str, SensorTypeGroup]) -> Snapshot:
    """Union of every group's initial readings."""
    readings: Dict[str, float] = {}
    for group in groups.values():
        readings.update(group.initial_readings)
    return Snapshot(readings)
