"""Unit tests for the noise and bounds model."""

from statistics import fmean

import pytest

from podsim.catalogue import LimitRange, Limits, Measurement, MeasurementFormat
from podsim.simulation.noise import NoiseModel


def _limits(low, high):
    return Limits(normal=LimitRange(low=low, high=high), critical=LimitRange(low=low, high=high))


class StubRandom:
    """Deterministic stand-in for random.Random."""

    def random(self):
        return 0.5

    def gauss(self, mu, sigma):
        return mu + 2 * sigma

    def uniform(self, low, high):
        return low


class TestNoiseModel:
    """Test bounded random values and additive noise."""

    def test_zero_amplitude_noise_is_zero(self):
        """Test that addNoise(0) always returns exactly 0."""
        noise = NoiseModel(seed=1)
        assert all(noise.add_noise(0) == 0.0 for _ in range(100))

    def test_noise_is_bounded_by_amplitude(self):
        """Test that no perturbation exceeds the RMS amplitude."""
        noise = NoiseModel(seed=2)
        samples = [noise.add_noise(0.5) for _ in range(5000)]
        assert max(abs(s) for s in samples) <= 0.5

    def test_noise_averages_to_zero(self):
        """Test that noise is zero-mean over many calls."""
        noise = NoiseModel(seed=3)
        samples = [noise.add_noise(1.0) for _ in range(10000)]
        assert abs(fmean(samples)) < 0.05

    def test_random_value_within_critical_limits(self):
        """Test that random values lie in [critical.low, critical.high)."""
        noise = NoiseModel(seed=4)
        limits = _limits(-3.0, 7.0)
        values = [noise.random_value(limits, MeasurementFormat.CONTINUOUS) for _ in range(5000)]

        assert min(values) >= -3.0
        assert max(values) < 7.0

    def test_random_value_rejects_enum_format(self):
        """Test that enum channels cannot be sampled."""
        noise = NoiseModel(seed=5)
        with pytest.raises(ValueError, match="enum"):
            noise.random_value(_limits(0, 1), MeasurementFormat.ENUM)

    def test_clamp(self):
        """Test clamping to the critical range."""
        limits = _limits(0, 10)
        assert NoiseModel.clamp(-1, limits) == 0
        assert NoiseModel.clamp(11, limits) == 10
        assert NoiseModel.clamp(4.2, limits) == 4.2

    def test_sample_stays_within_limits_with_large_noise(self):
        """Test that noisy samples are clamped into the channel limits."""
        noise = NoiseModel(seed=6)
        measurement = Measurement(
            key="levitation_height_1", type="levitation", sampling_time=250,
            limits=_limits(0, 1), rms_noise=5.0
        )
        values = [noise.sample(measurement) for _ in range(2000)]
        assert all(0 <= v <= 1 for v in values)

    def test_seeded_models_are_reproducible(self):
        """Test that equal seeds give equal sequences."""
        first, second = NoiseModel(seed=42), NoiseModel(seed=42)
        limits = _limits(0, 100)

        seq_a = [(first.random_value(limits), first.add_noise(1.0)) for _ in range(50)]
        seq_b = [(second.random_value(limits), second.add_noise(1.0)) for _ in range(50)]
        assert seq_a == seq_b

    def test_injected_generator(self):
        """Test that the PRNG can be swapped for a stub."""
        noise = NoiseModel(rng=StubRandom())

        assert noise.random_value(_limits(10, 20)) == 15.0
        # Gaussian draws beyond the amplitude are truncated
        assert noise.add_noise(0.3) == 0.3
        assert noise.uniform(1, 2) == 1
