"""
Bounded in-memory log of recent entries. When full, the oldest entry is dropped.
One instance per concern, owned by the runtime (see core/runtime.py).
"""
import threading
from collections import deque
from typing import Any


class RecentLog:
    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, entry: Any) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self) -> list[Any]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
