from collections import deque
from typing import Deque, List, Tuple

from engine.model import Event


class EventLog:
    """Bounded event storage with stable offsets for polling clients."""

    def __init__(self, max_events: int = 10000):
        self._log: Deque[Event] = deque(maxlen=max_events)
        self._base = 0  # offset of self._log[0]

    def append_many(self, evts: List[Event]) -> Tuple[int, int]:
        """Append events and return (start_offset, end_offset)."""
        start = self._base + len(self._log)
        for e in evts:
            if len(self._log) == self._log.maxlen:
                self._base += 1
            self._log.append(e)
        end = self._base + len(self._log) - 1
        return start, end

    def since(self, offset: int, limit: int = 1000) -> Tuple[List[Event], int]:
        """Return events starting from offset, up to limit.

        Offsets that have already been evicted resume at the oldest kept event.
        """
        offset = max(self._base, offset)
        i = offset - self._base
        chunk = list(self._log)[i: i + limit]
        return chunk, offset + len(chunk)

    def __len__(self) -> int:
        return len(self._log)
