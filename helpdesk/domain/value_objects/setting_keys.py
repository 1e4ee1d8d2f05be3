"""Recognized setting keys and their value parsers."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum

from helpdesk.domain.errors import ValidationError
from helpdesk.domain.value_objects.enums import TicketType

CENTS = Decimal("0.01")


class SettingKey(str, Enum):
    TICKET_FEE_HOME_MAINTENANCE = "ticket_fee_home_maintenance"
    TICKET_FEE_BACKBONE_MAINTENANCE = "ticket_fee_backbone_maintenance"
    TICKET_FEE_INSTALLATION = "ticket_fee_installation"
    TRANSPORT_FEE_HOME_MAINTENANCE = "transport_fee_home_maintenance"
    TRANSPORT_FEE_BACKBONE_MAINTENANCE = "transport_fee_backbone_maintenance"
    TRANSPORT_FEE_INSTALLATION = "transport_fee_installation"
    # Legacy combined fee, read only when the split keys are missing
    BONUS_HOME_MAINTENANCE = "bonus_home_maintenance"
    BONUS_BACKBONE_MAINTENANCE = "bonus_backbone_maintenance"
    BONUS_INSTALLATION = "bonus_installation"
    PREFERENCE_RATIO_MAINTENANCE = "preference_ratio_maintenance"
    PREFERENCE_RATIO_INSTALLATION = "preference_ratio_installation"
    CUTOFF_DAY = "cutoff_day"

    @classmethod
    def ticket_fee(cls, ticket_type: TicketType) -> "SettingKey":
        return cls(f"ticket_fee_{ticket_type.value}")

    @classmethod
    def transport_fee(cls, ticket_type: TicketType) -> "SettingKey":
        return cls(f"transport_fee_{ticket_type.value}")

    @classmethod
    def legacy_bonus(cls, ticket_type: TicketType) -> "SettingKey":
        return cls(f"bonus_{ticket_type.value}")

    @classmethod
    def lookup(cls, key: str) -> "SettingKey | None":
        try:
            return cls(key)
        except ValueError:
            return None


_COUNT_KEYS = frozenset({
    SettingKey.PREFERENCE_RATIO_MAINTENANCE,
    SettingKey.PREFERENCE_RATIO_INSTALLATION,
    SettingKey.CUTOFF_DAY,
})


def parse_amount(raw: str, key: str) -> Decimal:
    """Parse a non-negative money amount with two decimal places."""
    try:
        amount = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        raise ValidationError(f"Setting '{key}' must be a number, got {raw!r}", field=key)
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Setting '{key}' must be a non-negative amount", field=key)
    return amount.quantize(CENTS)


def parse_count(raw: str, key: str) -> int:
    try:
        value = int(raw.strip())
    except (ValueError, AttributeError):
        raise ValidationError(f"Setting '{key}' must be an integer, got {raw!r}", field=key)
    if value < 0:
        raise ValidationError(f"Setting '{key}' must not be negative", field=key)
    return value


def normalize_setting(key: str, value: str | None) -> str | None:
    """Validate a setting before it is stored.

    Recognized keys are parsed and written back in canonical form; unknown
    keys pass through untouched. Empty values clear the setting.
    """
    if not key or not key.strip():
        raise ValidationError("Setting key is required", field="key")
    if value is None or not str(value).strip():
        return None
    known = SettingKey.lookup(key)
    if known is None:
        return str(value)
    if known in _COUNT_KEYS:
        return str(parse_count(str(value), key))
    return str(parse_amount(str(value), key))
