"""Unit tests for the per-sensor-type update logic."""

import math

import pytest

from podsim.config_models import InitialValueSettings, MotionSettings, SimulationSettings
from podsim.logging_config import LogCapture
from podsim.simulation.noise import NoiseModel
from podsim.simulation.sensor_groups import InitialValuePolicy, group_measurements, initial_snapshot
from podsim.simulation.sensor_models import (
    IndependentRandomModel,
    MotionModel,
    TemperatureModel,
    create_sensor_model,
    logistic,
)


def _build(catalogue, settings=None, seed=0):
    """Groups, initial snapshot and noise model for a catalogue."""
    settings = settings or SimulationSettings(seed=seed)
    noise = NoiseModel(seed=seed)
    groups = group_measurements(catalogue.measurements(), InitialValuePolicy(InitialValueSettings(), noise))
    return groups, initial_snapshot(groups), noise, settings


class TestLogistic:
    """Test the logistic velocity curve."""

    def test_half_ceiling_at_inflection(self):
        assert logistic(12.5, 47.5, 0.4, 12.5) == pytest.approx(23.75)

    def test_asymptote(self):
        assert logistic(200.0, 47.5, 0.4, 12.5) == pytest.approx(47.5)
        assert logistic(0.0, 47.5, 0.4, 12.5) == pytest.approx(47.5 / (1 + math.exp(5.0)))


class TestModelRegistry:
    """Test selection of the model by sensor type tag."""

    def test_model_selection(self, make_catalogue, channel):
        catalogue = make_catalogue({
            "velocity_1": channel("motion", critical=(0, 50)),
            "thermistor_1": channel("Temperature", critical=(0, 60)),
            "pressure_in_reservoir": channel("pressure", critical=(0, 8)),
        })
        groups, _, noise, settings = _build(catalogue)

        assert isinstance(create_sensor_model(groups["motion"], noise, settings), MotionModel)
        assert isinstance(create_sensor_model(groups["Temperature"], noise, settings), TemperatureModel)
        assert isinstance(create_sensor_model(groups["pressure"], noise, settings), IndependentRandomModel)


class TestIndependentRandomModel:
    """Test the model used for uncoupled sensor types."""

    def test_updates_exactly_its_channels_within_limits(self, demo_catalogue):
        groups, snapshot, noise, settings = _build(demo_catalogue)
        model = create_sensor_model(groups["pressure"], noise, settings)
        before = snapshot.to_dict()

        for t in (700, 1400, 2100):
            readings = model.update(snapshot, t)
            assert set(readings) == set(groups["pressure"].channels)
            for name, value in readings.items():
                critical = demo_catalogue.channel(name).limits.critical
                assert critical.low <= value <= critical.high

        assert snapshot.to_dict() == before

    def test_aggregate_is_mean_of_siblings(self, make_catalogue, channel):
        catalogue = make_catalogue({
            "hall_effect_1": channel("hall_effect", critical=(0, 100)),
            "hall_effect_2": channel("hall_effect", critical=(0, 100)),
            "hall_effect_avg": channel("hall_effect", critical=(0, 100)),
        })
        groups, snapshot, noise, settings = _build(catalogue)
        model = IndependentRandomModel(groups["hall_effect"], noise, settings)

        readings = model.update(snapshot, 250)

        expected = (readings["hall_effect_1"] + readings["hall_effect_2"]) / 2
        assert readings["hall_effect_avg"] == pytest.approx(expected)


class TestTemperatureModel:
    """Test thermistor drift and the running average."""

    def test_running_average_without_noise(self, make_catalogue, channel):
        catalogue = make_catalogue({
            "thermistor_1": channel("temperature", critical=(0, 60)),
            "thermistor_2": channel("temperature", critical=(0, 60)),
            "thermistor_avg": channel("temperature", critical=(0, 60)),
        })
        groups, snapshot, noise, settings = _build(catalogue)
        model = TemperatureModel(groups["temperature"], noise, settings)
        assert model.initial_temperature == 25.0

        readings = model.update(snapshot.merge({"thermistor_1": 20.0, "thermistor_2": 30.0}), 1000)

        assert readings == {"thermistor_1": 20.0, "thermistor_2": 30.0, "thermistor_avg": 25.0}
        assert model.temperature == 25.0

    def test_noise_step_is_bounded(self, make_catalogue, channel):
        catalogue = make_catalogue({"thermistor_1": channel("temperature", critical=(0, 60), rms_noise=0.5)})
        groups, snapshot, noise, settings = _build(catalogue, seed=9)
        model = TemperatureModel(groups["temperature"], noise, settings)

        current = snapshot
        for t in range(1000, 21000, 1000):
            readings = model.update(current, t)
            assert abs(readings["thermistor_1"] - current["thermistor_1"]) <= 0.5
            current = current.merge(readings)


class TestMotionModel:
    """Test the logistic-Euler motion profile."""

    def test_first_step(self, motion_catalogue):
        """Test one 500 ms step from the initial conditions."""
        groups, snapshot, noise, settings = _build(motion_catalogue)
        model = MotionModel(groups["motion"], noise, settings)

        assert snapshot["velocity_1"] == 5.0
        assert snapshot["accelerometer_1"] == 0.0
        assert snapshot["displacement_1"] == 0.0

        readings = model.update(snapshot, 500)

        # The logistic target is far below the initial velocity, so the
        # required deceleration is clamped to the maximum acceleration
        assert model.target_velocity(500) == pytest.approx(47.5 / (1 + math.exp(4.8)))
        assert readings["accelerometer_1"] == pytest.approx(-5.0)
        assert readings["velocity_1"] == pytest.approx(2.5)
        assert readings["displacement_1"] == pytest.approx(1.25)
        assert snapshot["velocity_1"] == 5.0

    def test_custom_max_acceleration(self, motion_catalogue):
        settings = SimulationSettings(seed=0, motion=MotionSettings(max_acceleration=1.0))
        groups, snapshot, noise, _ = _build(motion_catalogue)
        model = MotionModel(groups["motion"], noise, settings)

        readings = model.update(snapshot, 500)

        assert readings["accelerometer_1"] == pytest.approx(-1.0)
        assert readings["velocity_1"] == pytest.approx(4.5)

    def test_converges_to_steady_state(self, motion_catalogue):
        """Test that velocity follows the logistic curve up to its asymptote."""
        groups, snapshot, noise, settings = _build(motion_catalogue)
        model = MotionModel(groups["motion"], noise, settings)

        current = snapshot
        displacement = 0.0
        for t in range(500, 60500, 500):
            readings = model.update(current, t)
            assert abs(readings["accelerometer_1"]) <= settings.motion.max_acceleration
            assert readings["displacement_1"] >= displacement
            displacement = readings["displacement_1"]
            current = current.merge(readings)

        assert current["velocity_1"] == pytest.approx(0.95 * 50, rel=1e-3)

    def test_repeated_time_does_not_integrate(self, motion_catalogue):
        groups, snapshot, noise, settings = _build(motion_catalogue)
        model = MotionModel(groups["motion"], noise, settings)

        first = model.update(snapshot, 500)
        second = model.update(snapshot.merge(first), 500)

        assert second == first

    def test_without_velocity_channel(self, make_catalogue, channel):
        """Test that a motion type without velocity is sampled independently."""
        catalogue = make_catalogue({
            "accelerometer_1": channel("motion", critical=(-10, 10), sampling_time=500),
            "displacement_1": channel("motion", critical=(0, 100), sampling_time=500),
        })
        groups, snapshot, noise, settings = _build(catalogue)

        with LogCapture("podsim") as capture:
            model = MotionModel(groups["motion"], noise, settings)

        assert capture.get_logs("WARNING")
        readings = model.update(snapshot, 500)
        assert set(readings) == {"accelerometer_1", "displacement_1"}
        assert -10 <= readings["accelerometer_1"] <= 10
