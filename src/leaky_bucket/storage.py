"""Hooks for saving and restoring bucket state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BucketState:
    """Persisted bucket state.

    ``requests`` is the drained volume at the time of the snapshot and
    ``last_update`` the timestamp that volume is valid for.
    """

    requests: float
    last_update: float


class BucketStore(ABC):
    """Abstract interface for storing and retrieving bucket state by key."""

    @abstractmethod
    def get_state(self, key: str) -> BucketState | None:
        """Return the saved state for ``key`` or None when nothing is stored."""

    @abstractmethod
    def save_state(self, key: str, state: BucketState) -> None:
        """Save or replace the state for ``key``."""

    @abstractmethod
    def delete_state(self, key: str) -> bool:
        """Delete the state for ``key``. Returns False when it was not stored."""


class MemoryBucketStore(BucketStore):
    """Store kept in a dict, lost when the process exits."""

    def __init__(self) -> None:
        self._states: dict[str, BucketState] = {}

    def get_state(self, key: str) -> BucketState | None:
        return self._states.get(key)

    def save_state(self, key: str, state: BucketState) -> None:
        self._states[key] = state

    def delete_state(self, key: str) -> bool:
        return self._states.pop(key, None) is not None


__all__ = ["BucketState", "BucketStore", "MemoryBucketStore"]
