"""Fire-and-forget delivery of recorded ticks to an external sink."""

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable, Optional

from podsim.logging_config import get_logger

from .series import RecordedTick

TickSink = Callable[[RecordedTick], None]


class TickPublisher:
    """
    Hands recorded ticks to a sink on a background worker.

    A single worker keeps deliveries in tick order. The simulation loop never
    waits on a delivery, and a failing sink is logged, not raised.
    """

    def __init__(self, sink: TickSink, name: Optional[str] = None):
        self.sink = sink
        self.name = name or getattr(sink, "__name__", type(sink).__name__)
        self.logger = get_logger(__name__)
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="podsim-publisher")
        self._lock = Lock()
        self.published = 0
        self.failed = 0

    def publish(self, tick: RecordedTick) -> None:
        """
        Queue a tick for delivery and return immediately.

        The sink receives its own deep copy, so nothing it does to the tick
        can reach the recorded series.
        """
        future = self.executor.submit(self.sink, tick.model_copy(deep=True))
        future.add_done_callback(lambda f, ts=tick.timestamp_ms: self._on_done(f, ts))

    def _on_done(self, future: Future, timestamp_ms: float) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        with self._lock:
            if exc is None:
                self.published += 1
                return
            self.failed += 1
        self.logger.warning(
            f"Sink '{self.name}' failed for tick at {timestamp_ms} ms: {exc}",
            extra={"timestamp_ms": timestamp_ms}
        )

    def close(self, wait: bool = True) -> None:
        """Stop accepting ticks; by default wait for queued deliveries."""
        self.executor.shutdown(wait=wait, cancel_futures=not wait)
