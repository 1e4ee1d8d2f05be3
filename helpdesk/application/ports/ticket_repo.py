"""Port interface for ticket persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.value_objects.enums import TicketPriority, TicketStatus, TicketType


@dataclass
class TicketFilter:
    """Optional criteria; upper date bounds are exclusive."""

    status: TicketStatus | None = None
    type: TicketType | None = None
    priority: TicketPriority | None = None
    search: str | None = None
    assigned_to: int | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    closed_from: datetime | None = None
    closed_to: datetime | None = None


class TicketRepository(ABC):
    @abstractmethod
    async def add(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int, for_update: bool = False) -> Ticket | None:
        ...

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def list(
        self,
        filters: TicketFilter | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Ticket]:
        """Matching tickets, newest first."""
        ...

    @abstractmethod
    async def count(self, filters: TicketFilter | None = None) -> int:
        ...

    @abstractmethod
    async def get_open(self, types: frozenset[TicketType], for_update: bool = False) -> list[Ticket]:
        """Open tickets of the given types, oldest first.

        With *for_update* the rows are locked, skipping rows another
        transaction already holds.
        """
        ...

    @abstractmethod
    async def get_active_for_user(self, user_id: int) -> Ticket | None:
        """The assigned/in-progress ticket the user is actively attached to."""
        ...

    @abstractmethod
    async def get_last_closed_for_user(self, user_id: int, since: datetime) -> Ticket | None:
        ...

    @abstractmethod
    async def get_stale_assigned(self, cutoff: datetime) -> list[Ticket]:
        """Tickets in ``assigned`` with an active assignment made before *cutoff*."""
        ...

    @abstractmethod
    async def max_daily_sequence(self, day_prefix: str) -> int:
        """Highest sequence used in ticket numbers for the day, 0 if none."""
        ...
