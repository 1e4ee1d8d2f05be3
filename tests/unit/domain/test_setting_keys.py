"""Tests for setting key validation and text normalization."""

from decimal import Decimal

import pytest

from helpdesk.domain.errors import ValidationError
from helpdesk.domain.value_objects.enums import TicketType
from helpdesk.domain.value_objects.names import clean_text, title_case
from helpdesk.domain.value_objects.setting_keys import (
    SettingKey,
    normalize_setting,
    parse_amount,
    parse_count,
)


def test_fee_keys_per_type():
    assert SettingKey.ticket_fee(TicketType.INSTALLATION) == SettingKey.TICKET_FEE_INSTALLATION
    assert SettingKey.transport_fee(TicketType.HOME_MAINTENANCE).value == "transport_fee_home_maintenance"
    assert SettingKey.lookup("nope") is None


def test_parse_amount_quantizes():
    assert parse_amount("50000", "k") == Decimal("50000.00")
    assert parse_amount(" 12.345 ", "k") == Decimal("12.34")


@pytest.mark.parametrize("raw", ["-1", "abc", "Infinity"])
def test_parse_amount_rejects(raw):
    with pytest.raises(ValidationError):
        parse_amount(raw, "ticket_fee_installation")


def test_parse_count():
    assert parse_count("4", "k") == 4
    with pytest.raises(ValidationError):
        parse_count("4.5", "k")
    with pytest.raises(ValidationError):
        parse_count("-2", "k")


def test_normalize_known_keys():
    assert normalize_setting("ticket_fee_installation", "100000") == "100000.00"
    assert normalize_setting("preference_ratio_maintenance", " 3 ") == "3"
    assert normalize_setting("cutoff_day", "20") == "20"


def test_normalize_unknown_key_passes_through():
    assert normalize_setting("company_name", "FiberNet") == "FiberNet"


def test_normalize_empty_value_clears():
    assert normalize_setting("ticket_fee_installation", "  ") is None
    assert normalize_setting("ticket_fee_installation", None) is None


def test_normalize_requires_key():
    with pytest.raises(ValidationError) as exc:
        normalize_setting(" ", "1")
    assert exc.value.field == "key"


def test_normalize_rejects_bad_fee():
    with pytest.raises(ValidationError) as exc:
        normalize_setting("transport_fee_installation", "free")
    assert exc.value.details["field"] == "transport_fee_installation"


def test_title_case():
    assert title_case("alice JOHNSON") == "Alice Johnson"
    assert title_case("pt  mitra") == "Pt  Mitra"


def test_clean_text():
    assert clean_text("  hi ") == "hi"
    assert clean_text("   ") is None
    assert clean_text(None) is None
