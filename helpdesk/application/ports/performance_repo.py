"""Port interface for performance log persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from helpdesk.domain.entities.performance_log import PerformanceLog


class PerformanceLogRepository(ABC):
    @abstractmethod
    async def add(self, log: PerformanceLog) -> PerformanceLog:
        ...

    @abstractmethod
    async def delete_for_ticket(self, ticket_id: int) -> int:
        ...

    @abstractmethod
    async def list(
        self,
        user_id: int | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[PerformanceLog]:
        ...

    @abstractmethod
    async def get_for_tickets(self, ticket_ids: list[int]) -> list[PerformanceLog]:
        ...
