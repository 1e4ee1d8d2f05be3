"""Pytest configuration and shared fixtures."""

import pytest

from fakes import FakeClock, Services, Store, add_user, build_services
from helpdesk.domain.value_objects.enums import UserRole


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def services(store, clock) -> Services:
    return build_services(store, clock)


@pytest.fixture
def admin(store):
    return add_user(store, "Admin User", role=UserRole.ADMIN)


@pytest.fixture
def helpdesk(store):
    return add_user(store, "Helpdesk Helen", role=UserRole.HELPDESK)


@pytest.fixture
def tech_a(store):
    return add_user(store, "Tech One")


@pytest.fixture
def tech_b(store):
    return add_user(store, "Tech Two")


@pytest.fixture
def backbone_tech(store):
    return add_user(store, "Backbone Bob", backbone=True)
