"""
Noise and bounds model for synthesized readings.

Every random draw made by a simulation run goes through one NoiseModel so a
fixed seed reproduces the whole run.
"""

import random
from typing import Optional

from podsim.catalogue import Limits, Measurement, MeasurementFormat


class NoiseModel:
    """Bounded random values and additive noise for catalogue channels."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        """
        Initialize noise model.

        Args:
            seed: Seed for the private PRNG. Ignored when rng is given.
            rng: Pre-built random generator, e.g. a stub for tests
        """
        self.seed = seed
        self._random = rng if rng is not None else random.Random(seed)

    def random_value(self, limits: Limits, fmt: MeasurementFormat = MeasurementFormat.CONTINUOUS) -> float:
        """Uniform value in [critical.low, critical.high)."""
        if fmt != MeasurementFormat.CONTINUOUS:
            raise ValueError(f"Cannot synthesize a random value for {fmt} measurements")
        low, high = limits.critical.low, limits.critical.high
        return low + self._random.random() * (high - low)

    def add_noise(self, rms_amplitude: float) -> float:
        """
        Zero-mean Gaussian perturbation truncated to [-rms, rms].

        Args:
            rms_amplitude: Noise RMS of the channel

        Returns:
            Additive noise, exactly 0.0 when the amplitude is 0
        """
        if rms_amplitude <= 0:
            return 0.0
        noise = self._random.gauss(0, rms_amplitude)
        return max(-rms_amplitude, min(rms_amplitude, noise))

    @staticmethod
    def clamp(value: float, limits: Limits) -> float:
        """Bound a value to the critical range."""
        return max(limits.critical.low, min(limits.critical.high, value))

    def sample(self, measurement: Measurement) -> float:
        """Independent noisy reading for one channel, within its critical limits."""
        value = self.random_value(measurement.limits, measurement.format)
        value += self.add_noise(measurement.rms_noise)
        return self.clamp(value, measurement.limits)

    def uniform(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)
