"""Warning collection for parse and refresh runs."""

import threading
from collections.abc import Iterable


class WarningCollector:
    """De-duplicating accumulator of human-readable warnings.

    One collector is scoped to a single parse or refresh call. Each distinct
    message is kept once, in the order it was first seen; repeats are dropped
    silently. Safe to share between refresh worker threads.
    """

    def __init__(self):
        self._seen: set[str] = set()
        self._messages: list[str] = []
        self._lock = threading.Lock()

    def add(self, message: str) -> bool:
        """Record a message. Returns True if it was not already present."""
        with self._lock:
            if message in self._seen:
                return False
            self._seen.add(message)
            self._messages.append(message)
            return True

    def extend(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.add(message)

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def __contains__(self, message: object) -> bool:
        with self._lock:
            return message in self._seen
