"""Configuration models for the pod telemetry simulator."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class MotionSettings(BaseModel):
    """Parameters of the logistic velocity profile used by the motion model."""

    growth_rate: float = Field(default=0.4, description="Logistic growth rate factor (1/s)")
    inflection_time: float = Field(default=12.5, description="Time of inflection of the velocity curve (s)")
    max_acceleration: float = Field(default=5.0, description="Maximum physical acceleration (m/s^2)")
    steady_state_fraction: float = Field(
        default=0.95, description="Steady-state velocity as a fraction of critical.high velocity"
    )

    @field_validator("max_acceleration")
    @classmethod
    def max_acceleration_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Maximum acceleration must be positive")
        return v

    @field_validator("steady_state_fraction")
    @classmethod
    def fraction_in_unit_interval(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("Steady-state fraction must be in (0, 1]")
        return v


class InitialValueSettings(BaseModel):
    """Initial readings for channels with a known physical meaning."""

    ambient_temperature: float = Field(default=25.0, description="Initial thermistor reading")
    power_line_resistance: float = Field(default=10.0, description="Nominal power line resistance")
    reservoir_pressure: float = Field(default=5.0, description="Initial pressure of reservoir channels")
    line_pressure: float = Field(default=1.0, description="Initial pressure of push/pull/brake lines")


class SimulationSettings(BaseModel):
    """Settings for a single simulation run."""

    seed: Optional[int] = Field(default=None, description="PRNG seed, None for a random seed")
    duration_ms: float = Field(default=30000.0, description="Simulated run duration in milliseconds")
    random_mode: bool = Field(default=False, description="Sample every channel independently")
    channel_filter: Optional[List[str]] = Field(default=None, description="Allow-list of simulated channels")
    motion: MotionSettings = Field(default_factory=MotionSettings)
    initial_values: InitialValueSettings = Field(default_factory=InitialValueSettings)

    @field_validator("duration_ms")
    @classmethod
    def duration_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Run duration must be positive")
        return v


class PathsConfig(BaseModel):
    """Configuration for file system paths."""

    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")
    output_dir: Path = Field(default=Path("simulation_data"), description="Directory for recorded series")

    @field_validator("log_dir", "output_dir", mode="before")
    @classmethod
    def ensure_path_exists(cls, v: str | Path) -> Path:
        """Ensure directories exist."""
        if isinstance(v, str):
            v = Path(v)
        v.mkdir(parents=True, exist_ok=True)
        return v


class LoggingConfig(BaseModel):
    """Configuration for the logging framework."""

    level: str = Field(default="INFO", description="Log level")
    format_console: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(run_id)s - %(message)s",
        description="Console log format"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Level must be one of {valid_levels}")
        return v.upper()


class SystemConfig(BaseModel):
    """Main system configuration."""

    catalogue_path: Path = Field(default=Path("config/catalogue.yml"), description="Measurement catalogue file")

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

    # System paths
    paths: PathsConfig = Field(default_factory=PathsConfig)

    # Logging configuration
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
