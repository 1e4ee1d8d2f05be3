"""One-off data repair jobs triggered by admins."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from helpdesk.application.ports.geocoder_port import GeocoderPort
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.domain.value_objects.geo_point import GeoPoint
from helpdesk.domain.value_objects.names import title_case

logger = logging.getLogger(__name__)

# Nominatim allows one request per second
NOMINATIM_DELAY_SECONDS = 1.1


@dataclass
class AreaBackfillResult:
    processed: int
    total: int
    errors: list[str] = field(default_factory=list)


@dataclass
class NameBackfillResult:
    users_updated: int
    tickets_updated: int


class MaintenanceService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        user_repo: UserRepository,
        geocoder: GeocoderPort,
        delay_seconds: float = NOMINATIM_DELAY_SECONDS,
    ):
        self._tickets = ticket_repo
        self._users = user_repo
        self._geocoder = geocoder
        self._delay = delay_seconds

    async def backfill_areas(self) -> AreaBackfillResult:
        """Fill in area and coordinates for tickets created without them."""
        pending = [t for t in await self._tickets.list() if not t.area and t.customer_location_url]
        result = AreaBackfillResult(processed=0, total=len(pending))
        if not pending:
            logger.info("Area backfill: nothing to do")
            return result

        for index, ticket in enumerate(pending):
            if index and self._delay:
                await asyncio.sleep(self._delay)

            point = ticket.location or GeoPoint.from_maps_url(ticket.customer_location_url)
            if point is None:
                point = await self._geocoder.locate(ticket.customer_location_url)
            if point is None:
                result.errors.append(
                    f"Ticket {ticket.ticket_number}: no coordinates in {ticket.customer_location_url}"
                )
                continue

            area = await self._geocoder.reverse_area(point)
            if area is None:
                result.errors.append(
                    f"Ticket {ticket.ticket_number}: no area for {point.latitude},{point.longitude}"
                )
                continue

            ticket.area = area
            ticket.latitude = point.latitude
            ticket.longitude = point.longitude
            await self._tickets.update(ticket)
            result.processed += 1

        logger.info(
            "Area backfill: %d/%d ticket(s) updated, %d error(s)",
            result.processed, result.total, len(result.errors),
        )
        return result

    async def backfill_names(self) -> NameBackfillResult:
        """Title-case every user name and customer name."""
        users_updated = 0
        for user in await self._users.list():
            normalized = title_case(user.name)
            if normalized != user.name:
                user.name = normalized
                await self._users.update(user)
                users_updated += 1

        tickets_updated = 0
        for ticket in await self._tickets.list():
            normalized = title_case(ticket.customer_name)
            if normalized != ticket.customer_name:
                ticket.customer_name = normalized
                await self._tickets.update(ticket)
                tickets_updated += 1

        logger.info("Name backfill: %d user(s), %d ticket(s)", users_updated, tickets_updated)
        return NameBackfillResult(users_updated=users_updated, tickets_updated=tickets_updated)
