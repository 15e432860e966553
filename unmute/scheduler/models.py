"""Data models for alarms."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
import uuid

from .schedule import (
    WEEKDAY_SHORT_NAMES,
    device_timezone,
    now_ms,
    resolve_fire_date,
    resolve_timezone,
    zone_key,
)
from .types import AlarmKind, FutureRepeat, SnoozeDuration

WEEKDAYS = [2, 3, 4, 5, 6]
WEEKENDS = [1, 7]


def _format_clock(hour: int, minute: int) -> str:
    """12-hour clock string, e.g. '7:30 AM'."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {suffix}"


def _new_seed() -> str:
    return str(uuid.uuid4()).upper()


@dataclass
class AlarmRecord:
    """Durable description of one user alarm.

    `schedule_seed` is fixed at creation and is the root of every backend
    request id of this alarm, so field edits never change those ids.
    """
    # Identity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    label: str = "Alarm"
    kind: AlarmKind = AlarmKind.DAILY

    # Time components (used by both daily and future)
    hour: int = 8
    minute: int = 0

    # Daily: weekdays to repeat on (Sunday=1 ... Saturday=7), empty = one-shot
    repeat_days: list[int] = field(default_factory=list)

    # Future: calendar day, repeat option, and the zone both are read in
    target_date: date | None = None
    future_repeat: FutureRepeat = FutureRepeat.NONE
    timezone: str | None = None

    # Settings
    snooze_enabled: bool = True
    snooze_duration: SnoozeDuration = SnoozeDuration.NINE
    enabled: bool = True

    # Metadata
    created_at_ms: int = field(default_factory=now_ms)
    schedule_seed: str = field(default_factory=_new_seed)

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")
        days = sorted(set(self.repeat_days))
        if any(d < 1 or d > 7 for d in days):
            raise ValueError(f"weekday out of range: {days}")
        self.repeat_days = days
        self.kind = AlarmKind(self.kind)
        self.future_repeat = FutureRepeat(self.future_repeat)
        self.snooze_duration = SnoozeDuration(self.snooze_duration)

    # ============== Projections ==============

    @property
    def fire_date(self) -> datetime | None:
        """Absolute fire instant of a future alarm."""
        return resolve_fire_date(self)

    @property
    def is_foreign_timezone(self) -> bool:
        if self.kind != AlarmKind.FUTURE or not self.timezone:
            return False
        return self.timezone != zone_key(device_timezone())

    @property
    def formatted_time(self) -> str:
        return _format_clock(self.hour, self.minute)

    @property
    def formatted_local_fire_time(self) -> str | None:
        """e.g. 'Rings at 2:00 AM your time' for foreign-zone future alarms."""
        if not self.is_foreign_timezone:
            return None
        fire = self.fire_date
        if fire is None:
            return None
        local = fire.astimezone(device_timezone())
        return f"Rings at {_format_clock(local.hour, local.minute)} your time"

    @property
    def formatted_date(self) -> str | None:
        """e.g. 'Feb 26, 2026'."""
        if self.kind != AlarmKind.FUTURE or self.target_date is None:
            return None
        d = self.target_date
        return f"{d:%b} {d.day}, {d.year}"

    @property
    def repeat_description(self) -> str:
        if self.kind == AlarmKind.DAILY:
            if not self.repeat_days:
                return ""
            if len(self.repeat_days) == 7:
                return "Every day"
            if self.repeat_days == WEEKDAYS:
                return "Weekdays"
            if self.repeat_days == WEEKENDS:
                return "Weekends"
            return ", ".join(WEEKDAY_SHORT_NAMES[d - 1] for d in self.repeat_days)
        if self.future_repeat == FutureRepeat.NONE:
            return ""
        return self.future_repeat.label

    @property
    def timezone_short_name(self) -> str | None:
        """Zone abbreviation (e.g. 'IST') when the alarm is in a foreign zone."""
        if not self.is_foreign_timezone:
            return None
        tz = resolve_timezone(self.timezone)
        return datetime.now(tz).tzname() or self.timezone

    # ============== Serialization ==============

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.kind.value,
            "hour": self.hour,
            "minute": self.minute,
            "repeat_days": list(self.repeat_days),
            "target_date": self.target_date.isoformat() if self.target_date else None,
            "future_repeat": self.future_repeat.value,
            "timezone": self.timezone,
            "snooze_enabled": self.snooze_enabled,
            "snooze_duration": self.snooze_duration.value,
            "enabled": self.enabled,
            "created_at_ms": self.created_at_ms,
            "schedule_seed": self.schedule_seed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlarmRecord":
        """Create from dictionary."""
        target = data.get("target_date")
        if isinstance(target, str):
            target = date.fromisoformat(target)

        return cls(
            id=data.get("id", str(uuid.uuid4())),
            label=data.get("label", "Alarm"),
            kind=AlarmKind(data.get("kind", "daily")),
            hour=data.get("hour", 8),
            minute=data.get("minute", 0),
            repeat_days=data.get("repeat_days") or [],
            target_date=target,
            future_repeat=FutureRepeat(data.get("future_repeat", "never")),
            timezone=data.get("timezone"),
            snooze_enabled=data.get("snooze_enabled", True),
            snooze_duration=SnoozeDuration(data.get("snooze_duration", 9)),
            enabled=data.get("enabled", True),
            created_at_ms=data.get("created_at_ms", now_ms()),
            schedule_seed=data.get("schedule_seed") or _new_seed(),
        )


@dataclass
class AlarmCreate:
    """Request to create a new alarm."""
    label: str = "Alarm"
    kind: AlarmKind = AlarmKind.DAILY
    hour: int = 8
    minute: int = 0
    repeat_days: list[int] = field(default_factory=list)
    target_date: date | None = None
    future_repeat: FutureRepeat = FutureRepeat.NONE
    timezone: str | None = None
    snooze_enabled: bool = True
    snooze_duration: SnoozeDuration = SnoozeDuration.NINE

    def build(self) -> AlarmRecord:
        """Create the record with a fresh identity and schedule seed."""
        return AlarmRecord(
            label=self.label,
            kind=self.kind,
            hour=self.hour,
            minute=self.minute,
            repeat_days=list(self.repeat_days),
            target_date=self.target_date,
            future_repeat=self.future_repeat,
            timezone=self.timezone,
            snooze_enabled=self.snooze_enabled,
            snooze_duration=self.snooze_duration,
        )


@dataclass
class AlarmPatch:
    """Edit of an existing alarm. Identity and schedule seed are never patched."""
    label: str | None = None
    kind: AlarmKind | None = None
    hour: int | None = None
    minute: int | None = None
    repeat_days: list[int] | None = None
    target_date: date | None = None
    future_repeat: FutureRepeat | None = None
    timezone: str | None = None
    snooze_enabled: bool | None = None
    snooze_duration: SnoozeDuration | None = None

    def apply(self, record: AlarmRecord) -> None:
        """Apply patch to a record."""
        if self.label is not None:
            record.label = self.label
        if self.kind is not None:
            record.kind = AlarmKind(self.kind)
        if self.hour is not None:
            if not 0 <= self.hour <= 23:
                raise ValueError(f"hour out of range: {self.hour}")
            record.hour = self.hour
        if self.minute is not None:
            if not 0 <= self.minute <= 59:
                raise ValueError(f"minute out of range: {self.minute}")
            record.minute = self.minute
        if self.repeat_days is not None:
            days = sorted(set(self.repeat_days))
            if any(d < 1 or d > 7 for d in days):
                raise ValueError(f"weekday out of range: {days}")
            record.repeat_days = days
        if self.target_date is not None:
            record.target_date = self.target_date
        if self.future_repeat is not None:
            record.future_repeat = FutureRepeat(self.future_repeat)
        if self.timezone is not None:
            record.timezone = self.timezone or None
        if self.snooze_enabled is not None:
            record.snooze_enabled = self.snooze_enabled
        if self.snooze_duration is not None:
            record.snooze_duration = SnoozeDuration(self.snooze_duration)
