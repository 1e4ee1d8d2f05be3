"""Setting entity — a key/value configuration pair."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Setting:
    key: str
    value: str | None
    updated_at: datetime | None = None
