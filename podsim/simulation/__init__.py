"""
Simulation engine for synthesized pod telemetry.

This package provides:
- Noise and bounds model for bounded random readings
- Channel state store with snapshot-replace semantics
- Per-sensor-type update logic (motion, temperature, independent random)
- Multi-rate scheduler merging independently clocked sensor types
- Simulation runs producing a recorded time series
"""

from .noise import NoiseModel
from .publisher import TickPublisher
from .scheduler import MultiRateScheduler, SchedulerConfigurationError
from .sensor_groups import InitialValuePolicy, SensorTypeGroup, base_key, group_measurements
from .sensor_models import (
    IndependentRandomModel,
    MotionModel,
    SensorModel,
    TemperatureModel,
    create_sensor_model,
)
from .series import RecordedSeries, RecordedTick
from .simulator_engine import SimulationError, SimulatorEngine, run_simulation
from .state_store import ChannelStateStore, Snapshot

__all__ = [
    "NoiseModel",
    "TickPublisher",
    "MultiRateScheduler",
    "SchedulerConfigurationError",
    "InitialValuePolicy",
    "SensorTypeGroup",
    "base_key",
    "group_measurements",
    "IndependentRandomModel",
    "MotionModel",
    "SensorModel",
    "TemperatureModel",
    "create_sensor_model",
    "RecordedSeries",
    "RecordedTick",
    "SimulationError",
    "SimulatorEngine",
    "run_simulation",
    "ChannelStateStore",
    "Snapshot",
]
