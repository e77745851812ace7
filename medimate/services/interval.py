from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def to_utc_naive(value: datetime) -> datetime:
    """Normalise a timestamp to naive UTC, the form bookings are stored in."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval ``[start, start + duration_minutes)``."""

    start: datetime
    duration_minutes: int

    @classmethod
    def of(cls, booking) -> "TimeInterval":
        return cls(start=booking.start, duration_minutes=booking.duration_minutes)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other: "TimeInterval") -> bool:
        # Touching endpoints are not an overlap
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
