"""Core type definitions for alarm scheduling.

This module defines:
- Alarm kinds and repeat options
- Schedule specifications (fixed instant / relative recurrence)
- Trigger types understood by the legacy notification primitive
- Presentation types consumed by the native alarm renderer
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal


# ============== Alarm Options ==============

class AlarmKind(str, Enum):
    """Kind of alarm."""
    DAILY = "daily"     # Wall-clock time, optionally repeating on weekdays
    FUTURE = "future"   # Specific date, optionally in a foreign timezone


class FutureRepeat(str, Enum):
    """Repeat option for future alarms."""
    NONE = "never"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SnoozeDuration(int, Enum):
    """Snooze length in minutes."""
    FIVE = 5
    NINE = 9
    FIFTEEN = 15

    @property
    def label(self) -> str:
        return f"{self.value} minutes"


class Capability(str, Enum):
    """Optional capabilities a backend adapter may advertise."""
    NOTIFICATION_CATEGORIES = "notification_categories"
    COUNTDOWN = "countdown"
    ENUMERABLE_CAP = "enumerable_cap"


# ============== Schedule Specifications ==============

@dataclass(frozen=True)
class LocalTime:
    """Wall-clock time in the device's own zone."""
    hour: int = 0
    minute: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"hour": self.hour, "minute": self.minute}


class RecurrenceKind(str, Enum):
    NEVER = "never"
    WEEKLY = "weekly"


@dataclass(frozen=True)
class Recurrence:
    """Recurrence rule of a relative schedule (weekday uses Sunday=1)."""
    kind: RecurrenceKind = RecurrenceKind.NEVER
    weekday: int | None = None

    @classmethod
    def never(cls) -> "Recurrence":
        return cls()

    @classmethod
    def weekly(cls, weekday: int) -> "Recurrence":
        return cls(kind=RecurrenceKind.WEEKLY, weekday=weekday)

    def to_dict(self) -> dict[str, Any]:
        if self.kind == RecurrenceKind.WEEKLY:
            return {"kind": self.kind.value, "weekday": self.weekday}
        return {"kind": self.kind.value}


@dataclass(frozen=True)
class FixedInstant:
    """Fire once at an absolute instant."""
    at: datetime
    kind: Literal["fixed"] = "fixed"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "at": self.at.isoformat()}


@dataclass(frozen=True)
class RelativeRecurrence:
    """Fire at a device-local time, once or weekly."""
    time: LocalTime
    repeats: Recurrence = field(default_factory=Recurrence.never)
    kind: Literal["relative"] = "relative"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "time": self.time.to_dict(),
            "repeats": self.repeats.to_dict(),
        }


# Union type for all schedule specifications
ScheduleSpec = FixedInstant | RelativeRecurrence


# ============== Legacy Trigger Types ==============

@dataclass(frozen=True)
class CalendarTrigger:
    """Calendar match in device-local date components.

    Unset components match any value. `repeats=False` fires on the first
    match only.
    """
    hour: int
    minute: int
    year: int | None = None
    month: int | None = None
    day: int | None = None
    weekday: int | None = None  # Sunday=1
    repeats: bool = False
    kind: Literal["calendar"] = "calendar"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        for name in ("year", "month", "day", "weekday"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        data["hour"] = self.hour
        data["minute"] = self.minute
        data["repeats"] = self.repeats
        return data


@dataclass(frozen=True)
class TimeIntervalTrigger:
    """Fire once after a number of seconds."""
    seconds: float
    kind: Literal["interval"] = "interval"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "seconds": self.seconds}


Trigger = CalendarTrigger | TimeIntervalTrigger


@dataclass
class NotificationContent:
    """Content of a legacy notification request."""
    title: str = "UNMUTE"
    body: str = "Alarm"
    category: str = "ALARM_CATEGORY"
    time_sensitive: bool = True
    user_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "category": self.category,
            "time_sensitive": self.time_sensitive,
            "user_info": self.user_info,
        }


@dataclass(frozen=True)
class NotificationAction:
    identifier: str
    title: str
    destructive: bool = False


@dataclass(frozen=True)
class NotificationCategory:
    identifier: str
    actions: tuple[NotificationAction, ...] = ()


# ============== Native Presentation ==============

@dataclass
class AlarmPresentation:
    """Initial presentation handed to the native primitive at registration."""
    title: str = "UNMUTE"
    snooze_enabled: bool = True
    countdown_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "snooze_enabled": self.snooze_enabled,
            "countdown_seconds": self.countdown_seconds,
        }


@dataclass
class AlarmConfiguration:
    """Everything the native primitive needs for one registration."""
    presentation: AlarmPresentation
    metadata: dict[str, Any] = field(default_factory=dict)
    sound: str = "alarm_tone.caf"

    def to_dict(self) -> dict[str, Any]:
        return {
            "presentation": self.presentation.to_dict(),
            "metadata": self.metadata,
            "sound": self.sound,
        }


class PresentationMode(str, Enum):
    ALERTING = "alerting"
    COUNTING_DOWN = "counting_down"
    PAUSED = "paused"


@dataclass(frozen=True)
class PresentationState:
    """Opaque live state pushed to the countdown renderer."""
    mode: PresentationMode
    fire_at: datetime | None = None      # counting down
    elapsed_seconds: float = 0.0         # paused
    total_seconds: float = 0.0           # paused

    @classmethod
    def alerting(cls) -> "PresentationState":
        return cls(mode=PresentationMode.ALERTING)

    @classmethod
    def counting_down(cls, fire_at: datetime) -> "PresentationState":
        return cls(mode=PresentationMode.COUNTING_DOWN, fire_at=fire_at)

    @classmethod
    def paused(cls, elapsed: float, total: float) -> "PresentationState":
        return cls(
            mode=PresentationMode.PAUSED,
            elapsed_seconds=elapsed,
            total_seconds=total,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "fire_at": self.fire_at.isoformat() if self.fire_at else None,
            "elapsed_seconds": self.elapsed_seconds,
            "total_seconds": self.total_seconds,
        }
