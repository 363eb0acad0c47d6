"""Defines the abstract contract every key-value backend implements."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set


class KeyValueStore(ABC):
    """
    Flat key-value store with sets, sorted sets and counters.

    Values are opaque strings. Every method is a single atomic operation on
    one key; nothing spans keys. Backend errors surface as
    ``StoreFailureError``.
    """

    # --- strings ---

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value at ``key`` or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Write ``value`` at ``key`` unconditionally."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key`` from every collection; True if anything was removed."""

    @abstractmethod
    async def set_if_absent(self, key: str, value: str) -> bool:
        """Write ``value`` only if ``key`` does not exist. True on write."""

    @abstractmethod
    async def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        """Write ``value`` only if the current value equals ``expected`` (None: absent)."""

    # --- sets ---

    @abstractmethod
    async def add_to_set(self, key: str, members: Iterable[str]) -> int:
        """Add members; returns how many were not already present."""

    @abstractmethod
    async def remove_from_set(self, key: str, members: Iterable[str]) -> int:
        """Remove members; returns how many were present."""

    @abstractmethod
    async def members(self, key: str) -> Set[str]:
        """All members of the set at ``key`` (empty when absent)."""

    # --- sorted sets ---

    @abstractmethod
    async def add_scored(self, key: str, member: str, score: float) -> None:
        """Insert ``member`` or overwrite its score."""

    @abstractmethod
    async def remove_scored(self, key: str, member: str) -> bool:
        """Remove ``member``; True if it was present."""

    @abstractmethod
    async def score(self, key: str, member: str) -> Optional[float]:
        """Score of ``member`` or None."""

    @abstractmethod
    async def range_descending(self, key: str, start: int, stop: int) -> List[str]:
        """
        Members ordered by score descending, ties by member descending.

        ``start`` and ``stop`` are inclusive positions; negative positions
        count from the end (``-1`` is the last member).
        """

    @abstractmethod
    async def rank_descending(self, key: str, member: str) -> Optional[int]:
        """0-based position of ``member`` in ``range_descending`` order, or None."""

    @abstractmethod
    async def increment_score(self, key: str, member: str, delta: float) -> float:
        """Add ``delta`` to the member's score (creating it at 0); returns the new score."""

    # --- counters ---

    @abstractmethod
    async def increment(self, key: str, delta: int) -> int:
        """Atomically add ``delta`` to the counter at ``key``; returns the new value."""

    @abstractmethod
    async def get_counter(self, key: str) -> int:
        """Counter value at ``key`` (0 when absent)."""

    # --- lifecycle ---

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def slice_inclusive(items: List[str], start: int, stop: int) -> List[str]:
    """Apply redis-style inclusive, negative-aware ``start``/``stop`` to a list."""
    length = len(items)
    if start < 0:
        start = max(length + start, 0)
    if stop < 0:
        stop = length + stop
    if start >= length or stop < start:
        return []
    return items[start:stop + 1]
