"""Centralized logging configuration for simulation runs."""

import json
import logging
import logging.config
import uuid
from typing import Any, Dict, Iterable, List, Optional

from .config_models import SystemConfig

# Attributes every LogRecord carries; anything else was passed through `extra`
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "run_id", "seed"}


class ContextFilter(logging.Filter):
    """Stamps every record with the run it belongs to."""

    def __init__(self, run_id: str, seed: Optional[int] = None):
        """
        Initialize the context filter.

        Args:
            run_id: Unique identifier for the simulation run
            seed: PRNG seed of the run, if any
        """
        super().__init__()
        self.run_id = run_id
        self.seed = seed

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        record.seed = self.seed
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, carrying run context and `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "run_id", None),
            "seed": getattr(record, "seed", None),
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(config: SystemConfig, run_id: Optional[str] = None) -> str:
    """
    Configure console and run-log handlers.

    The console shows records at the configured level; the run log in
    ``paths.log_dir`` receives everything down to DEBUG, including one line
    per simulation tick.

    Args:
        config: System configuration
        run_id: Simulation run identifier. If None, a short random id is used.

    Returns:
        The run_id used for logging
    """
    if run_id is None:
        run_id = uuid.uuid4().hex[:12]

    log_file = config.paths.log_dir / f"run_{run_id}.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": config.logging.format_console, "datefmt": "%H:%M:%S"},
            "json": {"()": JSONFormatter},
        },
        "filters": {
            "run": {"()": ContextFilter, "run_id": run_id, "seed": config.simulation.seed},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": config.logging.level,
                "formatter": "console",
                "filters": ["run"],
                "stream": "ext://sys.stderr",
            },
            "run_log": {
                "class": "logging.FileHandler",
                "level": "DEBUG",
                "formatter": "json",
                "filters": ["run"],
                "filename": str(log_file),
                "mode": "w",
            },
        },
        "root": {"level": "WARNING", "handlers": ["console", "run_log"]},
        "loggers": {
            "podsim": {"level": "DEBUG"},
        },
    })

    logging.getLogger(__name__).info(f"Run {run_id} logging to {log_file}")
    return run_id


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class _CaptureHandler(logging.Handler):
    def __init__(self, sink: List[Dict[str, Any]]):
        super().__init__(level=logging.DEBUG)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        self.sink.append({
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": record.created,
        })


class LogCapture:
    """
    Context manager collecting the records of one logger tree in memory.

    The logger is lowered to DEBUG while capturing and restored afterwards,
    so captures do not depend on how logging was configured beforehand.
    """

    def __init__(self, logger_name: str = ""):
        self.logger_name = logger_name
        self.logs: List[Dict[str, Any]] = []
        self._handler = _CaptureHandler(self.logs)
        self._previous_level = logging.NOTSET

    def __enter__(self) -> "LogCapture":
        logger = logging.getLogger(self.logger_name)
        self._previous_level = logger.level
        logger.setLevel(logging.DEBUG)
        logger.addHandler(self._handler)
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        logger = logging.getLogger(self.logger_name)
        logger.removeHandler(self._handler)
        logger.setLevel(self._previous_level)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get captured logs.

        Args:
            level: Only return records of this level name, e.g. "WARNING"

        Returns:
            Captured records as dictionaries, oldest first
        """
        if level is None:
            return list(self.logs)
        return [log for log in self.logs if log["level"] == level]


def log_tick(logger: logging.Logger, timestamp_ms: float, fired: Iterable[str]) -> None:
    """
    Log a recorded simulation tick with structured data.

    Args:
        logger: Logger instance
        timestamp_ms: Simulated time of the tick
        fired: Sensor types updated at this tick
    """
    fired = list(fired)
    logger.debug(
        f"TICK {timestamp_ms:.1f} ms: {', '.join(fired)}",
        extra={"timestamp_ms": timestamp_ms, "fired_types": fired}
    )
