"""
Central pytest configuration and fixtures.

This module provides the fixtures shared across all test modules: catalogue
builders, simulation settings and the demonstration catalogue.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import pytest

from podsim.catalogue import Catalogue, catalogue_from_dict, load_catalogue
from podsim.config_models import SimulationSettings

REPO_ROOT = Path(__file__).resolve().parent.parent
DEMO_CATALOGUE = REPO_ROOT / "config" / "catalogue.yml"

ChannelFactory = Callable[..., Dict[str, Any]]


def _channel(
    sensor_type: str,
    critical: Tuple[float, float] = (0.0, 100.0),
    normal: Optional[Tuple[float, float]] = None,
    sampling_time: float = 1000.0,
    rms_noise: float = 0.0,
    fmt: str = "continuous",
) -> Dict[str, Any]:
    """Plain catalogue entry for one channel."""
    if normal is None:
        normal = critical
    data: Dict[str, Any] = {
        "format": fmt,
        "type": sensor_type,
        "sampling_time": sampling_time,
        "rms_noise": rms_noise,
    }
    if fmt == "continuous":
        data["limits"] = {
            "normal": {"low": normal[0], "high": normal[1]},
            "critical": {"low": critical[0], "high": critical[1]},
        }
    return data


# ================================================================================
# Catalogue fixtures
# ================================================================================

@pytest.fixture
def channel() -> ChannelFactory:
    """Factory for plain catalogue channel entries."""
    return _channel


@pytest.fixture
def make_catalogue() -> Callable[[Dict[str, Dict[str, Any]]], Catalogue]:
    """Factory building a single-pod catalogue from channel entries."""
    def build(measurements: Dict[str, Dict[str, Any]]) -> Catalogue:
        return catalogue_from_dict({"pods": {"pod_1": {"name": "Test Pod", "measurements": measurements}}})

    return build


@pytest.fixture
def motion_catalogue(make_catalogue) -> Catalogue:
    """Accelerometer, velocity and displacement sampled every 500 ms, no noise."""
    return make_catalogue({
        "accelerometer_1": _channel("motion", critical=(-10, 10), sampling_time=500),
        "velocity_1": _channel("motion", critical=(0, 50), normal=(0, 45), sampling_time=500),
        "displacement_1": _channel("motion", critical=(0, 2000), sampling_time=500),
    })


@pytest.fixture
def demo_catalogue() -> Catalogue:
    """The demonstration catalogue shipped in config/."""
    return load_catalogue(DEMO_CATALOGUE)


@pytest.fixture
def settings() -> SimulationSettings:
    """Seeded simulation settings."""
    return SimulationSettings(seed=42)


# ================================================================================
# Hooks
# ================================================================================

def pytest_collection_modifyitems(config: pytest.Config, items) -> None:
    """Add markers based on the test path."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
