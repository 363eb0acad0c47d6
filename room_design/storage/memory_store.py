"""
In-process key-value store.

Used by default for local play and by the test-suite. Every call holds a
single ``asyncio.Lock`` so each operation is atomic with respect to other
tasks on the same event loop.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Set

from room_design.storage.base_store import KeyValueStore, slice_inclusive

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed implementation of ``KeyValueStore``."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}
        self._sets: Dict[str, Set[str]] = {}
        self._sorted: Dict[str, Dict[str, float]] = {}
        self._counters: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._values[key] = value

    async def delete(self, key: str) -> bool:
        async with self._lock:
            removed = False
            for collection in (self._values, self._sets, self._sorted, self._counters):
                if key in collection:
                    del collection[key]
                    removed = True
            return removed

    async def set_if_absent(self, key: str, value: str) -> bool:
        async with self._lock:
            if key in self._values:
                return False
            self._values[key] = value
            return True

    async def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        async with self._lock:
            if self._values.get(key) != expected:
                return False
            self._values[key] = value
            return True

    async def add_to_set(self, key: str, members: Iterable[str]) -> int:
        async with self._lock:
            current = self._sets.setdefault(key, set())
            before = len(current)
            current.update(members)
            return len(current) - before

    async def remove_from_set(self, key: str, members: Iterable[str]) -> int:
        async with self._lock:
            current = self._sets.get(key)
            if not current:
                return 0
            removed = 0
            for member in members:
                if member in current:
                    current.discard(member)
                    removed += 1
            if not current:
                del self._sets[key]
            return removed

    async def members(self, key: str) -> Set[str]:
        async with self._lock:
            return set(self._sets.get(key, set()))

    async def add_scored(self, key: str, member: str, score: float) -> None:
        async with self._lock:
            self._sorted.setdefault(key, {})[member] = float(score)

    async def remove_scored(self, key: str, member: str) -> bool:
        async with self._lock:
            scores = self._sorted.get(key)
            if not scores or member not in scores:
                return False
            del scores[member]
            if not scores:
                del self._sorted[key]
            return True

    async def score(self, key: str, member: str) -> Optional[float]:
        async with self._lock:
            return self._sorted.get(key, {}).get(member)

    def _ordered(self, key: str) -> List[str]:
        scores = self._sorted.get(key, {})
        return [member for member, _ in sorted(scores.items(), key=lambda item: (item[1], item[0]), reverse=True)]

    async def range_descending(self, key: str, start: int, stop: int) -> List[str]:
        async with self._lock:
            return slice_inclusive(self._ordered(key), start, stop)

    async def rank_descending(self, key: str, member: str) -> Optional[int]:
        async with self._lock:
            ordered = self._ordered(key)
            try:
                return ordered.index(member)
            except ValueError:
                return None

    async def increment_score(self, key: str, member: str, delta: float) -> float:
        async with self._lock:
            scores = self._sorted.setdefault(key, {})
            scores[member] = scores.get(member, 0.0) + delta
            return scores[member]

    async def increment(self, key: str, delta: int) -> int:
        async with self._lock:
            self._counters[key] = self._counters.get(key, 0) + delta
            return self._counters[key]

    async def get_counter(self, key: str) -> int:
        async with self._lock:
            return self._counters.get(key, 0)

    async def close(self) -> None:
        logger.debug("In-memory store closed")
