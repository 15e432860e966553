"""Schedule expansion utilities.

Turns an alarm record into the concrete schedule specifications registered
with a backend, one per backend-visible trigger.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone, tzinfo
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta
from loguru import logger
from tzlocal import get_localzone_name

from ..config import settings
from .types import (
    AlarmKind,
    FixedInstant,
    FutureRepeat,
    LocalTime,
    Recurrence,
    RelativeRecurrence,
    ScheduleSpec,
)

if TYPE_CHECKING:
    from .models import AlarmRecord

logger = logger.bind(module="scheduler.schedule")

# A weekly alarm never expands to more than one slot per weekday
MAX_WEEKDAY_SLOTS = 7

WEEKDAY_SHORT_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def device_timezone() -> tzinfo:
    """The zone device-local wall-clock times are expressed in.

    Always an IANA zone so DST transitions are followed; the configured
    zone wins over the one the host reports.
    """
    if settings.local_timezone:
        try:
            return ZoneInfo(settings.local_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown local timezone {settings.local_timezone!r}, using system zone")
    try:
        name = get_localzone_name()
        if name:
            return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, LookupError) as e:
        logger.warning(f"Cannot determine system timezone: {e}")
    return ZoneInfo("UTC")


def zone_key(tz: tzinfo) -> str:
    """Identifier of a zone, used to tell foreign zones from the device zone."""
    return getattr(tz, "key", None) or str(tz)


def resolve_timezone(identifier: str | None, default: tzinfo | None = None) -> tzinfo:
    """Resolve an IANA identifier; missing or unknown ids fall back to `default`."""
    fallback = default or device_timezone()
    if not identifier:
        return fallback
    try:
        return ZoneInfo(identifier)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {identifier!r}, using {zone_key(fallback)}")
        return fallback


def weekday_number(dt: datetime) -> int:
    """Weekday of `dt` with Sunday=1 ... Saturday=7."""
    return dt.isoweekday() % 7 + 1


def resolve_fire_date(record: AlarmRecord, local_tz: tzinfo | None = None) -> datetime | None:
    """Absolute fire instant of a future alarm (UTC), or None.

    The target day and the alarm's hour:minute are both read in the alarm's
    own timezone.
    """
    if record.kind != AlarmKind.FUTURE or record.target_date is None:
        return None
    tz = resolve_timezone(record.timezone, local_tz)
    target = record.target_date
    wall = datetime(target.year, target.month, target.day, record.hour, record.minute, tzinfo=tz)
    return wall.astimezone(timezone.utc)


def next_occurrence(hour: int, minute: int, current: datetime, tz: tzinfo) -> datetime:
    """Next instant strictly after `current` showing hour:minute on the wall clock of `tz`."""
    local = current.astimezone(tz)
    candidate = local.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= local:
        candidate = (candidate.replace(tzinfo=None) + relativedelta(days=1)).replace(tzinfo=tz)
    return candidate.astimezone(timezone.utc)


def slot_count(record: AlarmRecord) -> int:
    """Number of schedule specs the record currently expands to."""
    if record.kind == AlarmKind.DAILY and record.repeat_days:
        return len(record.repeat_days)
    return 1


def cancellation_slots(record: AlarmRecord) -> int:
    """Number of id slots to retract so that any earlier expansion is covered."""
    return max(slot_count(record), MAX_WEEKDAY_SLOTS)


def advance_recurring(
    record: AlarmRecord,
    fire: datetime,
    current: datetime,
    local_tz: tzinfo | None = None,
) -> datetime:
    """Move a monthly/yearly fire instant forward until it is after `current`.

    Steps are taken on the wall clock of the alarm's zone and always counted
    from the original target so that day clamping (Jan 31 -> Feb 28) does not
    accumulate.
    """
    tz = resolve_timezone(record.timezone, local_tz)
    origin = fire.astimezone(tz)
    if record.future_repeat == FutureRepeat.MONTHLY:
        step = relativedelta(months=1)
    else:
        step = relativedelta(years=1)

    candidate = origin
    n = 0
    while candidate <= current:
        n += 1
        candidate = (origin.replace(tzinfo=None) + step * n).replace(tzinfo=tz)
    return candidate.astimezone(timezone.utc)


def expand(
    record: AlarmRecord,
    *,
    now: datetime | None = None,
    local_tz: tzinfo | None = None,
) -> list[ScheduleSpec]:
    """Expand an alarm record into its ordered schedule specifications.

    Args:
        record: The alarm to expand
        now: When given, monthly/yearly fixed instants that already elapsed
            are advanced to their next occurrence
        local_tz: Device zone (defaults to the configured device zone)

    Returns:
        One spec per backend registration, never empty
    """
    device_tz = local_tz or device_timezone()
    time_of_day = LocalTime(hour=record.hour, minute=record.minute)

    if record.kind == AlarmKind.DAILY:
        if not record.repeat_days:
            return [RelativeRecurrence(time=time_of_day, repeats=Recurrence.never())]
        return [
            RelativeRecurrence(time=time_of_day, repeats=Recurrence.weekly(day))
            for day in sorted(record.repeat_days)
        ]

    fire = resolve_fire_date(record, device_tz)
    if fire is None:
        logger.warning(f"Future alarm {record.id} has no target date, scheduling next occurrence")
        return [RelativeRecurrence(time=time_of_day, repeats=Recurrence.never())]

    if record.future_repeat == FutureRepeat.WEEKLY:
        local_fire = fire.astimezone(device_tz)
        return [
            RelativeRecurrence(
                time=LocalTime(hour=local_fire.hour, minute=local_fire.minute),
                repeats=Recurrence.weekly(weekday_number(local_fire)),
            )
        ]

    if record.future_repeat in (FutureRepeat.MONTHLY, FutureRepeat.YEARLY) and now is not None:
        fire = advance_recurring(record, fire, now, device_tz)

    return [FixedInstant(at=fire)]
