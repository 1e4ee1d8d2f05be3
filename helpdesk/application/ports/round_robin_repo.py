"""Port interface for the persisted auto-assign cycle counters."""

from abc import ABC, abstractmethod


class RoundRobinRepository(ABC):
    @abstractmethod
    async def increment_counter(self, rr_key: str) -> int:
        """Advance the counter for *rr_key* and return the value before the increment.

        The counter row stays locked until the transaction ends, so concurrent
        auto-assign requests queue behind each other.
        """
        ...
