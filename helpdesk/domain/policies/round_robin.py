"""RoundRobinPolicy — deterministic cycling over candidates and work classes."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TypeVar

from helpdesk.domain.value_objects.enums import TicketClass
from helpdesk.domain.value_objects.setting_keys import SettingKey, parse_count

T = TypeVar("T")

DEFAULT_MAINTENANCE_RATIO = 4
DEFAULT_INSTALLATION_RATIO = 2


def pick_next(
    candidates: Sequence[T],
    counter: int,
    key: Callable[[T], object] = lambda c: c.id,
) -> tuple[T, int]:
    """Deterministic round-robin pick from a sorted candidate list.

    1. Sort candidates by *key* for stable ordering (id by default).
    2. Use *counter mod len(candidates)* to select the index.
    3. Return the chosen candidate and the incremented counter.

    Raises:
        ValueError: if candidates list is empty.
    """
    if not candidates:
        raise ValueError("Cannot pick from an empty candidate list")

    sorted_candidates = sorted(candidates, key=key)

    index = counter % len(sorted_candidates)
    chosen = sorted_candidates[index]

    return chosen, counter + 1


@dataclass(frozen=True)
class AssignRatio:
    """Maintenance : installation mix for consecutive auto-assignments.

    Within every window of ``maintenance + installation`` assignments the first
    ``maintenance`` positions prefer maintenance work, the rest installation.
    """

    maintenance: int = DEFAULT_MAINTENANCE_RATIO
    installation: int = DEFAULT_INSTALLATION_RATIO

    @property
    def cycle_size(self) -> int:
        return self.maintenance + self.installation

    def class_for(self, counter: int) -> TicketClass:
        if self.cycle_size <= 0:
            return TicketClass.MAINTENANCE
        position = counter % self.cycle_size
        if position < self.maintenance:
            return TicketClass.MAINTENANCE
        return TicketClass.INSTALLATION

    @classmethod
    def from_settings(cls, values: Mapping[str, str | None]) -> "AssignRatio":
        """Read the ratio settings; a missing value keeps its default.

        Raises:
            ValidationError: if a configured value is not a non-negative integer.
        """
        maintenance_key = SettingKey.PREFERENCE_RATIO_MAINTENANCE.value
        installation_key = SettingKey.PREFERENCE_RATIO_INSTALLATION.value
        raw_maintenance = values.get(maintenance_key)
        raw_installation = values.get(installation_key)
        maintenance = (
            parse_count(raw_maintenance, maintenance_key)
            if raw_maintenance and raw_maintenance.strip()
            else DEFAULT_MAINTENANCE_RATIO
        )
        installation = (
            parse_count(raw_installation, installation_key)
            if raw_installation and raw_installation.strip()
            else DEFAULT_INSTALLATION_RATIO
        )
        return cls(maintenance=maintenance, installation=installation)
