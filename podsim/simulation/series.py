"""
Recorded series produced by a simulation run.

A series is the ordered list of global snapshots with the simulated time at
which each was taken. Ticks are only ever appended.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class RecordedTick(BaseModel):
    """Global snapshot at one instant of simulated time."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: float = Field(..., description="Simulated time since run start")
    fired: List[str] = Field(default_factory=list, description="Sensor types updated at this tick")
    readings: Dict[str, float] = Field(default_factory=dict, description="Reading of every channel")


class RecordedSeries(BaseModel):
    """Append-only time series of recorded ticks."""

    random_mode: bool = Field(default=False, description="Whether channels were sampled independently")
    seed: Optional[int] = Field(default=None, description="PRNG seed of the run")
    duration_ms: float = Field(default=0.0, description="Requested run duration")
    ticks: List[RecordedTick] = Field(default_factory=list)

    def append(self, tick: RecordedTick) -> None:
        """Append a tick; timestamps must not go backwards."""
        if self.ticks and tick.timestamp_ms < self.ticks[-1].timestamp_ms:
            raise ValueError(
                f"Tick at {tick.timestamp_ms} ms is earlier than the last recorded tick "
                f"({self.ticks[-1].timestamp_ms} ms)"
            )
        self.ticks.append(tick)

    def __len__(self) -> int:
        return len(self.ticks)

    @property
    def timestamps(self) -> List[float]:
        return [tick.timestamp_ms for tick in self.ticks]

    @property
    def channels(self) -> List[str]:
        return list(self.ticks[0].readings) if self.ticks else []

    def channel_values(self, channel: str) -> List[float]:
        """Every recorded value of one channel, in time order."""
        return [tick.readings[channel] for tick in self.ticks]

    def ticks_for(self, sensor_type: str) -> List[float]:
        """Timestamps at which a sensor type was updated."""
        return [tick.timestamp_ms for tick in self.ticks if sensor_type in tick.fired]

    def fire_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for tick in self.ticks:
            for sensor_type in tick.fired:
                counts[sensor_type] = counts.get(sensor_type, 0) + 1
        return counts

    def as_array(self, channels: Optional[Sequence[str]] = None) -> Tuple[np.ndarray, np.ndarray, List[str]]:
        """
        Convert the series to numpy arrays.

        Args:
            channels: Channels to include, all channels by default

        Returns:
            Timestamps (n_ticks,), values (n_ticks, n_channels) and the
            channel names in column order
        """
        names = list(channels) if channels is not None else self.channels
        timestamps = np.array(self.timestamps, dtype=float)
        values = np.array(
            [[tick.readings[name] for name in names] for tick in self.ticks],
            dtype=float,
        ).reshape(len(self.ticks), len(names))
        return timestamps, values, names

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-channel min, max, mean and standard deviation."""
        _, values, names = self.as_array()
        if values.size == 0:
            return {}
        return {
            name: {
                "min": float(np.min(values[:, i])),
                "max": float(np.max(values[:, i])),
                "mean": float(np.mean(values[:, i])),
                "std": float(np.std(values[:, i])),
            }
            for i, name in enumerate(names)
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def to_json(self) -> str:
        return self.model_dump_json()

    def save_to_file(self, file_path: Path) -> None:
        """Save series to JSON file."""
        with open(file_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_file(cls, file_path: Path) -> "RecordedSeries":
        """Load series from JSON file."""
        with open(file_path, "r") as f:
            data = json.load(f)
        return cls(**data)
