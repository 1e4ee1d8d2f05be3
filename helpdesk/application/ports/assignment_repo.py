"""Port interface for assignment persistence.

Rows are append-only: reassignment deactivates, it never deletes.
"""

from abc import ABC, abstractmethod

from helpdesk.domain.entities.assignment import Assignment


class AssignmentRepository(ABC):
    @abstractmethod
    async def add(self, assignment: Assignment) -> Assignment:
        ...

    @abstractmethod
    async def get_active(self, ticket_id: int) -> list[Assignment]:
        """Active rows for the ticket, lead first."""
        ...

    @abstractmethod
    async def get_active_for_tickets(self, ticket_ids: list[int]) -> dict[int, list[Assignment]]:
        ...

    @abstractmethod
    async def get_history(self, ticket_id: int) -> list[Assignment]:
        ...

    @abstractmethod
    async def deactivate_all(self, ticket_id: int) -> int:
        ...

    @abstractmethod
    async def get_busy_user_ids(self) -> set[int]:
        """Users actively attached to an assigned or in-progress ticket."""
        ...
