from threading import Lock
from typing import List
from jsonds.engine.model import Event, make_event

class EventStore:
    """Append-only in-memory annotation log, safe to share between tasks and threads."""

    def __init__(self):
        self._log: List[Event] = []
        self._next_index = 0
        self._lock = Lock()

    def append(self, event: Event) -> None:
        """Append an already built event and advance the counter."""
        with self._lock:
            self._log.append(event)
            self._next_index += 1

    def record(self, timestamp_ms: int) -> Event:
        """Create the next synthetic event at `timestamp_ms` and append it."""
        with self._lock:
            event = make_event(timestamp_ms, self._next_index)
            self._log.append(event)
            self._next_index += 1
        return event

    def query_range(self, from_ms: int, to_ms: int) -> List[Event]:
        """Return events with from_ms < timestamp < to_ms, in insertion order."""
        with self._lock:
            return [e for e in self._log if from_ms < e.timestamp < to_ms]

    def snapshot(self) -> List[Event]:
        with self._lock:
            return list(self._log)

    @property
    def next_index(self) -> int:
        with self._lock:
            return self._next_index

    def __len__(self) -> int:
        with self._lock:
            return len(self._log)
