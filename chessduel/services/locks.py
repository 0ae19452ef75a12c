"""Per-game mutual exclusion. Requests on the same game run one at a time, different games never wait on each other."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID


class SessionLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[UUID, threading.Lock] = {}

    def _lock_for(self, game_id: UUID) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(game_id, threading.Lock())

    @contextmanager
    def hold(self, game_id: UUID) -> Iterator[None]:
        lock = self._lock_for(game_id)
        with lock:
            yield
