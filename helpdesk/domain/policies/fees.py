"""FeePolicy — per-technician ticket/transport fees earned at closure."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from helpdesk.domain.value_objects.enums import PerformStatus, TicketType
from helpdesk.domain.value_objects.setting_keys import SettingKey, parse_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class FeeRate:
    """Configured amounts for one ticket type, paid to each assignee."""

    ticket_fee: Decimal = ZERO
    transport_fee: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.ticket_fee + self.transport_fee


@dataclass(frozen=True)
class FeeSchedule:
    """Typed view over the fee settings, validated when built."""

    rates: Mapping[TicketType, FeeRate]

    def rate_for(self, ticket_type: TicketType) -> FeeRate:
        return self.rates.get(ticket_type, FeeRate())

    @classmethod
    def from_settings(cls, values: Mapping[str, str | None]) -> "FeeSchedule":
        """Build the schedule from raw key/value settings.

        Lookup per type:
          1. ``ticket_fee_<type>`` / ``transport_fee_<type>``
          2. legacy ``bonus_<type>`` taken as the ticket fee
          3. zero, logged so an unconfigured type is visible

        Raises:
            ValidationError: if a configured value is not a valid amount.
        """
        rates: dict[TicketType, FeeRate] = {}
        for ticket_type in TicketType:
            ticket_key = SettingKey.ticket_fee(ticket_type).value
            transport_key = SettingKey.transport_fee(ticket_type).value
            legacy_key = SettingKey.legacy_bonus(ticket_type).value

            raw_ticket = _present(values.get(ticket_key))
            raw_transport = _present(values.get(transport_key))
            raw_legacy = _present(values.get(legacy_key))

            if raw_ticket is not None:
                ticket_fee = parse_amount(raw_ticket, ticket_key)
            elif raw_legacy is not None:
                ticket_fee = parse_amount(raw_legacy, legacy_key)
                logger.info("Using legacy %s as ticket fee for %s", legacy_key, ticket_type.value)
            else:
                ticket_fee = ZERO
                logger.warning("No ticket fee configured for %s, using 0", ticket_type.value)

            if raw_transport is not None:
                transport_fee = parse_amount(raw_transport, transport_key)
            else:
                transport_fee = ZERO
                if raw_legacy is None:
                    logger.warning("No transport fee configured for %s, using 0", ticket_type.value)

            rates[ticket_type] = FeeRate(ticket_fee=ticket_fee, transport_fee=transport_fee)
        return cls(rates=rates)


@dataclass(frozen=True)
class BonusBreakdown:
    perform_status: PerformStatus
    ticket_fee: Decimal
    transport_fee: Decimal

    @property
    def total_per_technician(self) -> Decimal:
        return self.ticket_fee + self.transport_fee

    @property
    def completed_within_sla(self) -> bool:
        return self.perform_status == PerformStatus.PERFORM


WITHHELD = BonusBreakdown(
    perform_status=PerformStatus.NOT_PERFORM,
    ticket_fee=ZERO,
    transport_fee=ZERO,
)


def is_within_sla(closed_at: datetime, sla_deadline: datetime) -> bool:
    return closed_at <= sla_deadline


def compute_bonus(ticket_type: TicketType, on_time: bool, schedule: FeeSchedule) -> BonusBreakdown:
    """Pure function: fees for each assignee of a closed ticket.

    A late closure withholds both fees. On time, every assignee receives the
    full configured amounts; there is no split between crew members.
    """
    if not on_time:
        return WITHHELD
    rate = schedule.rate_for(ticket_type)
    return BonusBreakdown(
        perform_status=PerformStatus.PERFORM,
        ticket_fee=rate.ticket_fee,
        transport_fee=rate.transport_fee,
    )


def _present(raw: str | None) -> str | None:
    if raw is None or not str(raw).strip():
        return None
    return str(raw)
