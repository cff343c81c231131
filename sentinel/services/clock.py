"""Clock and actor context passed explicitly into the core services."""

import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from sentinel.models.enums import Role


def as_utc(value: datetime | None) -> datetime | None:
    """Return an aware UTC datetime; naive values are taken to be UTC already.

    SQLite drops tzinfo on the way back from the database.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Clock:
    """Source of "now" and of the business-calendar "today"."""

    def __init__(self, timezone: str = "UTC") -> None:
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().astimezone(self.tz).date()


class FixedClock(Clock):
    """Clock frozen at a given instant, for sweeps replayed at a known time."""

    def __init__(self, at: datetime, timezone: str = "UTC") -> None:
        super().__init__(timezone)
        self.at = as_utc(at)

    def now(self) -> datetime:
        return self.at


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, and in which tenant."""

    tenant_id: uuid.UUID
    user_id: uuid.UUID | None
    role: Role

    @classmethod
    def for_user(cls, user) -> "ActorContext":
        return cls(tenant_id=user.tenant_id, user_id=user.id, role=Role(user.role))

    @property
    def is_supervisor_or_above(self) -> bool:
        return self.role.at_least(Role.SUPERVISOR)
