"""
Per-sensor-type update logic.

Each sensor type present in the catalogue is driven by one model. A model
reads the pre-tick snapshot of the whole pod and returns fresh readings for
exactly the channels of its own type; it never writes to the snapshot.
"""

import math
from abc import ABC, abstractmethod
from statistics import fmean
from typing import Dict, List, Mapping, Optional, Tuple, Type

from podsim.config_models import MotionSettings, SimulationSettings
from podsim.logging_config import get_logger

from .noise import NoiseModel
from .sensor_groups import SensorTypeGroup, base_key

logger = get_logger(__name__)

Readings = Dict[str, float]


def logistic(t: float, ceiling: float, growth_rate: float, inflection_time: float) -> float:
    """Logistic curve with asymptote `ceiling`, evaluated at time t (seconds)."""
    return ceiling / (1 + math.exp(-growth_rate * (t - inflection_time)))


class SensorModel(ABC):
    """State-transition logic for all channels of one sensor type."""

    def __init__(self, group: SensorTypeGroup, noise: NoiseModel, settings: SimulationSettings):
        self.group = group
        self.noise = noise
        self.settings = settings

    @abstractmethod
    def update(self, snapshot: Mapping[str, float], elapsed_ms: float) -> Readings:
        """
        Compute the next readings of this sensor type.

        Args:
            snapshot: Pre-tick readings of every channel (read-only)
            elapsed_ms: Simulated time since the start of the run

        Returns:
            New values for exactly the channels of this type
        """

    def _sample_independent(self) -> Readings:
        readings: Readings = {}
        for name, measurement in self.group.channels.items():
            if not measurement.is_aggregate:
                readings[name] = self.noise.sample(measurement)
        return self._fill_aggregates(readings)

    def _fill_aggregates(self, readings: Readings) -> Readings:
        """Set every aggregate channel to the mean of its siblings."""
        for name, measurement in self.group.channels.items():
            if not measurement.is_aggregate:
                continue
            siblings = [readings[s] for s in self.group.siblings(name) if s in readings]
            if siblings:
                readings[name] = self.noise.clamp(fmean(siblings), measurement.limits)
            else:
                readings[name] = self.noise.sample(measurement)
        return readings


class IndependentRandomModel(SensorModel):
    """Every channel sampled independently within its limits."""

    def update(self, snapshot: Mapping[str, float], elapsed_ms: float) -> Readings:
        return self._sample_independent()


class TemperatureModel(SensorModel):
    """
    Thermistor channels drifting around their last reading.

    Each thermistor takes a bounded random step of its own noise amplitude
    from the value in the snapshot. ``temperature`` tracks the running
    average of all thermistors, which is also what aggregate channels report.
    """

    def __init__(self, group: SensorTypeGroup, noise: NoiseModel, settings: SimulationSettings):
        super().__init__(group, noise, settings)
        sensors = [
            value for name, value in group.initial_readings.items()
            if not group.channels[name].is_aggregate
        ]
        self.initial_temperature = fmean(sensors) if sensors else settings.initial_values.ambient_temperature
        self.temperature = self.initial_temperature

    def update(self, snapshot: Mapping[str, float], elapsed_ms: float) -> Readings:
        readings: Readings = {}
        for name, measurement in self.group.channels.items():
            if measurement.is_aggregate:
                continue
            previous = snapshot.get(name, self.group.initial_readings[name])
            value = previous + self.noise.add_noise(measurement.rms_noise)
            readings[name] = self.noise.clamp(value, measurement.limits)

        if readings:
            self.temperature = fmean(readings.values())
        return self._fill_aggregates(readings)


class MotionModel(SensorModel):
    """
    Acceleration, velocity and displacement of the pod.

    Velocity follows a logistic curve towards a steady state just below the
    critical velocity. The acceleration needed to reach the curve within one
    timestep is clamped to the maximum physical acceleration, then velocity
    and displacement are integrated with explicit Euler steps. This is an
    approximation of a run profile, not a closed-form solution.
    """

    ROLES = {
        "accelerometer": "acceleration",
        "acceleration": "acceleration",
        "velocity": "velocity",
        "displacement": "displacement",
        "keyence": "displacement",
    }

    def __init__(self, group: SensorTypeGroup, noise: NoiseModel, settings: SimulationSettings):
        super().__init__(group, noise, settings)
        self.motion: MotionSettings = settings.motion
        self.roles: Dict[str, List[str]] = {"acceleration": [], "velocity": [], "displacement": []}
        for name, measurement in group.channels.items():
            role = self.ROLES.get(base_key(name))
            if role is not None and not measurement.is_aggregate:
                self.roles[role].append(name)

        self.acceleration = self._mean(group.initial_readings, "acceleration", 0.0)
        self.velocity = self._mean(group.initial_readings, "velocity", 0.0)
        self.displacement = self._mean(group.initial_readings, "displacement", 0.0)
        self._last_ms = 0.0

        if not self.roles["velocity"]:
            logger.warning(
                f"Motion type '{group.type}' has no velocity channel, sampling its channels independently"
            )
            self.steady_state = None
        else:
            ceiling = min(group.channels[c].limits.critical.high for c in self.roles["velocity"])
            self.steady_state = self.motion.steady_state_fraction * ceiling

    def _mean(self, values: Mapping[str, float], role: str, default: float) -> float:
        present = [values[c] for c in self.roles[role] if c in values]
        return fmean(present) if present else default

    def _role_bounds(self, role: str) -> Optional[Tuple[float, float]]:
        channels = self.roles[role]
        if not channels:
            return None
        low = max(self.group.channels[c].limits.critical.low for c in channels)
        high = min(self.group.channels[c].limits.critical.high for c in channels)
        return (low, high) if low <= high else None

    @staticmethod
    def _bound(value: float, bounds: Optional[Tuple[float, float]]) -> float:
        if bounds is None:
            return value
        return max(bounds[0], min(bounds[1], value))

    def target_velocity(self, elapsed_ms: float) -> float:
        """Velocity the logistic profile asks for at the given time."""
        return logistic(
            elapsed_ms / 1000.0,
            self.steady_state,
            self.motion.growth_rate,
            self.motion.inflection_time,
        )

    def update(self, snapshot: Mapping[str, float], elapsed_ms: float) -> Readings:
        if self.steady_state is None:
            return self._sample_independent()

        dt = (elapsed_ms - self._last_ms) / 1000.0
        if dt > 0:
            self.velocity = self._mean(snapshot, "velocity", self.velocity)
            self.displacement = self._mean(snapshot, "displacement", self.displacement)

            acceleration = (self.target_velocity(elapsed_ms) - self.velocity) / dt
            max_acc = self.motion.max_acceleration
            acceleration = max(-max_acc, min(max_acc, acceleration))
            self.acceleration = self._bound(acceleration, self._role_bounds("acceleration"))

            self.velocity = self._bound(self.velocity + self.acceleration * dt, self._role_bounds("velocity"))
            self.displacement = self._bound(
                self.displacement + self.velocity * dt, self._role_bounds("displacement")
            )
            self._last_ms = elapsed_ms

        state = {
            "acceleration": self.acceleration,
            "velocity": self.velocity,
            "displacement": self.displacement,
        }
        readings: Readings = {}
        for role, channels in self.roles.items():
            for name in channels:
                measurement = self.group.channels[name]
                value = state[role] + self.noise.add_noise(measurement.rms_noise)
                readings[name] = self.noise.clamp(value, measurement.limits)

        for name, measurement in self.group.channels.items():
            if name not in readings and not measurement.is_aggregate:
                readings[name] = self.noise.sample(measurement)

        return self._fill_aggregates(readings)


MODEL_REGISTRY: Dict[str, Type[SensorModel]] = {
    "motion": MotionModel,
    "temperature": TemperatureModel,
}


def create_sensor_model(group: SensorTypeGroup, noise: NoiseModel,
                        settings: Optional[SimulationSettings] = None) -> SensorModel:
    """
    Build the model for a sensor type, selected by its type tag.

    Types without a dedicated model are sampled independently.
    """
    settings = settings or SimulationSettings()
    model_class = MODEL_REGISTRY.get(group.type.lower(), IndependentRandomModel)
    logger.debug(f"Sensor type '{group.type}' uses {model_class.__name__}")
    return model_class(group, noise, settings)
