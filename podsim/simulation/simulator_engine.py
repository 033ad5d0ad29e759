"""
Core simulation engine for synthesized pod telemetry.

The engine turns a measurement catalogue into a recorded time series. It
groups channels by sensor type, starts every channel from its initial value,
and lets the multi-rate scheduler decide which types are updated at each tick.
"""

from typing import Dict, Iterable, Mapping, Optional, Set

from podsim.catalogue import Catalogue
from podsim.config_loader import ConfigurationError
from podsim.config_models import SimulationSettings
from podsim.logging_config import get_logger, log_tick

from .noise import NoiseModel
from .publisher import TickPublisher, TickSink
from .scheduler import MultiRateScheduler
from .sensor_groups import InitialValuePolicy, SensorTypeGroup, group_measurements, initial_snapshot
from .sensor_models import Readings, SensorModel, create_sensor_model
from .series import RecordedSeries, RecordedTick
from .state_store import ChannelStateStore, Snapshot


class SimulationError(RuntimeError):
    """Raised when a run fails after it started; carries the ticks recorded so far."""

    def __init__(self, message: str, series: RecordedSeries):
        super().__init__(message)
        self.series = series


class SimulatorEngine:
    """Simulation engine for one measurement catalogue."""

    def __init__(self, catalogue: Catalogue, settings: Optional[SimulationSettings] = None,
                 sink: Optional[TickSink] = None, noise: Optional[NoiseModel] = None):
        """
        Build sensor groups and initial readings, and validate the schedule.

        Args:
            catalogue: Read-only measurement catalogue
            settings: Simulation settings, defaults when omitted
            sink: Optional callable receiving every recorded tick
            noise: Noise model shared by all runs. When omitted every run
                draws from a fresh model seeded with settings.seed.

        Raises:
            ConfigurationError: If the catalogue cannot be simulated
        """
        self.catalogue = catalogue
        self.settings = settings or SimulationSettings()
        self.sink = sink
        self.logger = get_logger(__name__)
        self._noise = noise

        self.measurements = catalogue.measurements()
        if not self.measurements:
            raise ConfigurationError("Catalogue has no continuous measurements to simulate")

        policy = InitialValuePolicy(self.settings.initial_values, noise or NoiseModel(self.settings.seed))
        self.groups: Dict[str, SensorTypeGroup] = group_measurements(self.measurements, policy)
        self.initial_snapshot: Snapshot = initial_snapshot(self.groups)

        # Fail before the first tick if the periods would stall the clock
        MultiRateScheduler(self._periods(self.groups))

        self.logger.info(
            f"Simulator ready: {len(self.measurements)} channel(s) in {len(self.groups)} sensor type(s)"
        )

    @staticmethod
    def _periods(groups: Mapping[str, SensorTypeGroup]) -> Dict[str, float]:
        return {name: group.sampling_period for name, group in groups.items()}

    def _run_noise(self) -> NoiseModel:
        return self._noise if self._noise is not None else NoiseModel(self.settings.seed)

    def resolve_filter(self, channel_filter: Optional[Iterable[str]]) -> Optional[Set[str]]:
        """
        Validate an allow-list of channels.

        Only listed channels are simulated; every other channel keeps its
        initial value for the whole run. None means no restriction.

        Raises:
            ConfigurationError: If a name is not a simulated channel
        """
        if channel_filter is None:
            return None
        allowed = set(channel_filter)
        unknown = sorted(allowed - set(self.measurements))
        if unknown:
            raise ConfigurationError(f"Channel filter names unknown or non-simulated channels: {', '.join(unknown)}")
        return allowed

    def sample_group(self, group: SensorTypeGroup, noise: NoiseModel) -> Readings:
        """Independent noisy sample for every channel of a group."""
        return {name: noise.sample(measurement) for name, measurement in group.channels.items()}

    def run(self, duration_ms: Optional[float] = None, random_mode: Optional[bool] = None,
            channel_filter: Optional[Iterable[str]] = None) -> RecordedSeries:
        """
        Run the simulation.

        Args:
            duration_ms: Simulated run time; settings.duration_ms by default
            random_mode: Sample every due channel independently instead of
                using the sensor models; settings.random_mode by default
            channel_filter: Allow-list of channels to simulate;
                settings.channel_filter by default

        Returns:
            Recorded series of every tick up to and including duration_ms.
            A duration shorter than every sampling period, 0 included,
            gives an empty series.

        Raises:
            ConfigurationError: If the arguments cannot be simulated
            SimulationError: If a tick fails; the partial series is attached
        """
        duration_ms = self.settings.duration_ms if duration_ms is None else duration_ms
        random_mode = self.settings.random_mode if random_mode is None else random_mode
        if channel_filter is None:
            channel_filter = self.settings.channel_filter
        if duration_ms < 0:
            raise ConfigurationError(f"Run duration must not be negative, got {duration_ms}")

        allowed = self.resolve_filter(channel_filter)
        groups = {
            name: group for name, group in self.groups.items()
            if allowed is None or allowed.intersection(group.channels)
        }

        scheduler = MultiRateScheduler(self._periods(groups))
        store = ChannelStateStore(self.initial_snapshot)
        noise = self._run_noise()
        models: Dict[str, SensorModel] = {}
        if not random_mode:
            models = {name: create_sensor_model(group, noise, self.settings) for name, group in groups.items()}

        series = RecordedSeries(random_mode=random_mode, seed=self.settings.seed, duration_ms=duration_ms)
        publisher = TickPublisher(self.sink) if self.sink is not None else None

        mode = "random" if random_mode else "model-based"
        self.logger.info(f"Starting {mode} simulation for {duration_ms} ms")

        try:
            for t, fired in scheduler.ticks(duration_ms):
                try:
                    snapshot = self._step(store, groups, models, noise, t, fired, allowed, random_mode)
                except Exception as e:
                    raise SimulationError(f"Simulation failed at {t} ms: {e}", series) from e

                tick = RecordedTick(timestamp_ms=t, fired=fired, readings=snapshot.to_dict())
                series.append(tick)
                log_tick(self.logger, t, fired)
                if publisher is not None:
                    publisher.publish(tick)
        finally:
            if publisher is not None:
                publisher.close()

        self.logger.info(f"Simulation finished: {len(series)} tick(s), fire counts {scheduler.fire_counts}")
        return series

    def _step(self, store: ChannelStateStore, groups: Mapping[str, SensorTypeGroup],
              models: Mapping[str, SensorModel], noise: NoiseModel, t: float,
              fired: Iterable[str], allowed: Optional[Set[str]], random_mode: bool) -> Snapshot:
        # Every fired type reads the same pre-tick snapshot
        snapshot = store.get()
        updates: Readings = {}
        for name in fired:
            if random_mode:
                readings = self.sample_group(groups[name], noise)
            else:
                readings = models[name].update(snapshot, t)
            if allowed is not None:
                readings = {channel: value for channel, value in readings.items() if channel in allowed}
            updates.update(readings)

        next_snapshot = snapshot.merge(updates)
        store.replace(next_snapshot)
        return next_snapshot


def run_simulation(catalogue: Catalogue, duration_ms: float, random_mode: bool = False,
                   channel_filter: Optional[Iterable[str]] = None,
                   settings: Optional[SimulationSettings] = None,
                   sink: Optional[TickSink] = None) -> RecordedSeries:
    """Build an engine for the catalogue and run it once."""
    engine = SimulatorEngine(catalogue, settings=settings, sink=sink)
    return engine.run(duration_ms, random_mode=random_mode, channel_filter=channel_filter)
