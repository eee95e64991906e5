"""Time source for the services; swap in a fixed clock for deterministic tests."""
from datetime import date, datetime, timezone


class Clock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


system_clock = Clock()


def utcnow() -> datetime:
    return system_clock.now()
