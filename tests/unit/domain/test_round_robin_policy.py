"""Tests for RoundRobinPolicy."""

from collections import Counter

import pytest

from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import ValidationError
from helpdesk.domain.policies.round_robin import AssignRatio, pick_next
from helpdesk.domain.value_objects.enums import TicketClass, UserRole


def _tech(uid: int) -> User:
    return User(id=uid, name=f"T{uid}", role=UserRole.TECHNICIAN)


def test_pick_single_candidate():
    chosen, new_counter = pick_next([_tech(1)], 0)
    assert chosen.id == 1
    assert new_counter == 1


def test_pick_alternates_between_two():
    """Counter 0 → first, counter 1 → second, counter 2 → first again."""
    candidates = [_tech(1), _tech(2)]
    ids = []
    counter = 0
    for _ in range(4):
        chosen, counter = pick_next(candidates, counter)
        ids.append(chosen.id)
    assert ids == [1, 2, 1, 2]


def test_pick_is_order_independent():
    a, _ = pick_next([_tech(3), _tech(1), _tech(2)], 0)
    b, _ = pick_next([_tech(1), _tech(2), _tech(3)], 0)
    assert a.id == b.id == 1


def test_pick_empty_raises():
    with pytest.raises(ValueError):
        pick_next([], 0)


# ─── Class cycle ────────────────────────────────────────────────────


def test_default_ratio_cycle():
    ratio = AssignRatio()
    classes = [ratio.class_for(i) for i in range(6)]
    assert classes == [TicketClass.MAINTENANCE] * 4 + [TicketClass.INSTALLATION] * 2


def test_ratio_converges_over_many_windows():
    ratio = AssignRatio(maintenance=3, installation=1)
    counts = Counter(ratio.class_for(i) for i in range(400))
    assert counts[TicketClass.MAINTENANCE] == 300
    assert counts[TicketClass.INSTALLATION] == 100


def test_zero_ratio_falls_back_to_maintenance():
    ratio = AssignRatio(maintenance=0, installation=0)
    assert ratio.class_for(5) == TicketClass.MAINTENANCE


def test_installation_only_ratio():
    ratio = AssignRatio(maintenance=0, installation=2)
    assert {ratio.class_for(i) for i in range(4)} == {TicketClass.INSTALLATION}


def test_ratio_from_settings():
    ratio = AssignRatio.from_settings({
        "preference_ratio_maintenance": "5",
        "preference_ratio_installation": " 1 ",
    })
    assert (ratio.maintenance, ratio.installation) == (5, 1)
    assert ratio.cycle_size == 6


def test_ratio_from_settings_defaults_when_missing():
    assert AssignRatio.from_settings({}) == AssignRatio(4, 2)


def test_ratio_from_settings_rejects_junk():
    with pytest.raises(ValidationError):
        AssignRatio.from_settings({"preference_ratio_maintenance": "four"})
