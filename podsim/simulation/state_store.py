"""Channel state store holding the current snapshot of a simulation run."""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional


class Snapshot(Mapping[str, float]):
    """Immutable mapping of channel name to its reading at one instant."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, float]] = None):
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, key: str) -> float:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Snapshot({dict(self._values)!r})"

    def merge(self, updates: Mapping[str, float]) -> "Snapshot":
        """Return a new snapshot with updates applied over this one."""
        merged = dict(self._values)
        merged.update(updates)
        return Snapshot(merged)

    def to_dict(self) -> Dict[str, float]:
        """Plain, independent copy of the readings."""
        return dict(self._values)


class ChannelStateStore:
    """
    Current snapshot of every channel, owned by exactly one simulation run.

    The snapshot is only ever swapped as a whole; readers holding a previous
    snapshot keep seeing the values of their own timestep.
    """

    def __init__(self, initial: Mapping[str, float]):
        self._snapshot = initial if isinstance(initial, Snapshot) else Snapshot(initial)

    def get(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Mapping[str, float]) -> None:
        """Atomically swap in a new snapshot."""
        self._snapshot = snapshot if isinstance(snapshot, Snapshot) else Snapshot(snapshot)
