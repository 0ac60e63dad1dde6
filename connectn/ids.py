"""Board id generation."""

from __future__ import annotations

import itertools
import threading


class IdSequence:
    """Hands out increasing board ids and counts how many were issued."""

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._issued = 0
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            self._issued += 1
            return next(self._counter)

    @property
    def issued(self) -> int:
        return self._issued


# Shared by every board that is not given its own sequence
default_sequence = IdSequence()
