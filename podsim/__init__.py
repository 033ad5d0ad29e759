"""Pod telemetry simulator: synthesized sensor readings for telemetry testing."""

# Import key modules for easy access
from . import catalogue as catalogue
from . import config_loader as config_loader
from . import simulation as simulation

# Version information
__version__ = "0.1.0"

# Expose commonly used classes
from .catalogue import Catalogue as Catalogue
from .catalogue import load_catalogue as load_catalogue
from .config_loader import ConfigurationError as ConfigurationError
from .config_loader import load_config as load_config
from .simulation import RecordedSeries as RecordedSeries
from .simulation import SimulatorEngine as SimulatorEngine
from .simulation import run_simulation as run_simulation

__all__ = [
    "catalogue",
    "config_loader",
    "simulation",
    "Catalogue",
    "ConfigurationError",
    "RecordedSeries",
    "SimulatorEngine",
    "load_catalogue",
    "load_config",
    "run_simulation",
]
