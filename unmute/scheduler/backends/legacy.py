"""Legacy scheduler on top of the flat notification request queue.

Each schedule spec becomes one calendar-triggered notification request.
The queue is capped, so the pending count is reported for limit warnings.
"""
from collections.abc import Hashable
from datetime import tzinfo
from time import time_ns
from typing import Protocol

from loguru import logger

from ..identity import derive
from ..models import AlarmRecord
from ..schedule import device_timezone, resolve_fire_date
from ..types import (
    Capability,
    CalendarTrigger,
    FixedInstant,
    FutureRepeat,
    NotificationAction,
    NotificationCategory,
    NotificationContent,
    RecurrenceKind,
    ScheduleSpec,
    TimeIntervalTrigger,
    Trigger,
)
from .base import AlarmScheduler

logger = logger.bind(module="scheduler.backends.legacy")

ALARM_CATEGORY = "ALARM_CATEGORY"
SNOOZE_ACTION = "SNOOZE_ACTION"
DISMISS_ACTION = "DISMISS_ACTION"


class NotificationCenter(Protocol):
    """Legacy trigger primitive: a flat, capped notification request queue."""

    async def request_authorization(self) -> bool:
        ...

    async def register(self, request_id: str, trigger: Trigger, payload: NotificationContent) -> None:
        ...

    def unregister(self, request_id: str) -> None:
        ...

    async def count_pending(self) -> int:
        ...

    def set_categories(self, categories: list[NotificationCategory]) -> None:
        ...


def make_content(record: AlarmRecord) -> NotificationContent:
    return NotificationContent(
        title="UNMUTE",
        body=record.label or "Alarm",
        category=ALARM_CATEGORY,
        user_info={
            "alarmId": record.id,
            "isSnoozeEnabled": record.snooze_enabled,
            "snoozeDuration": record.snooze_duration.value,
        },
    )


def calendar_trigger(record: AlarmRecord, spec: ScheduleSpec, local_tz: tzinfo | None = None) -> CalendarTrigger:
    """Translate a schedule spec into device-local calendar components.

    Monthly and yearly future alarms repeat on the queue's own calendar
    matching instead of firing once. Their day and month come from the
    record's target date, not from an advanced (possibly clamped) instant.
    """
    if isinstance(spec, FixedInstant):
        device_tz = local_tz or device_timezone()
        local = spec.at.astimezone(device_tz)
        if record.future_repeat in (FutureRepeat.MONTHLY, FutureRepeat.YEARLY):
            target = resolve_fire_date(record, device_tz)
            if target is not None:
                local = target.astimezone(device_tz)
        if record.future_repeat == FutureRepeat.MONTHLY:
            return CalendarTrigger(hour=local.hour, minute=local.minute, day=local.day, repeats=True)
        if record.future_repeat == FutureRepeat.YEARLY:
            return CalendarTrigger(
                hour=local.hour, minute=local.minute,
                month=local.month, day=local.day, repeats=True,
            )
        return CalendarTrigger(
            hour=local.hour, minute=local.minute,
            year=local.year, month=local.month, day=local.day,
        )

    if spec.repeats.kind == RecurrenceKind.WEEKLY:
        return CalendarTrigger(
            hour=spec.time.hour, minute=spec.time.minute,
            weekday=spec.repeats.weekday, repeats=True,
        )
    return CalendarTrigger(hour=spec.time.hour, minute=spec.time.minute)


class LegacyNotificationScheduler(AlarmScheduler):
    """Scheduler backed by the capped notification request queue."""

    name = "legacy"
    capabilities = frozenset({Capability.NOTIFICATION_CATEGORIES, Capability.ENUMERABLE_CAP})

    def __init__(self, center: NotificationCenter):
        super().__init__()
        self.center = center

    # ============== Permission ==============

    async def request_permission(self) -> bool:
        try:
            return await self.center.request_authorization()
        except Exception as e:
            logger.error(f"Notification permission error: {e}")
            return False

    # ============== Scheduling ==============

    def request_id(self, record: AlarmRecord, index: int) -> str:
        return str(super().request_id(record, index))

    async def _register(self, record: AlarmRecord, request_id: Hashable, spec: ScheduleSpec) -> None:
        trigger = calendar_trigger(record, spec)
        await self.center.register(str(request_id), trigger, make_content(record))

    # ============== Cancel ==============

    def cancel(self, record: AlarmRecord) -> None:
        # The bare seed is the id one-shot requests used before per-slot ids
        identifiers = [record.schedule_seed, *self.request_ids(record)]
        for identifier in identifiers:
            self._unregister_quietly(self.center, identifier)
        logger.debug(f"Cancelled {len(identifiers)} request ids for alarm {record.id}")

    # ============== Notification Count ==============

    async def pending_count(self) -> int:
        try:
            return await self.center.count_pending()
        except Exception as e:
            logger.error(f"Failed to count pending notifications: {e}")
            return 0

    # ============== Categories ==============

    def register_categories(self) -> None:
        category = NotificationCategory(
            identifier=ALARM_CATEGORY,
            actions=(
                NotificationAction(identifier=SNOOZE_ACTION, title="Snooze"),
                NotificationAction(identifier=DISMISS_ACTION, title="Dismiss", destructive=True),
            ),
        )
        self.center.set_categories([category])
        logger.info(f"Registered notification category {ALARM_CATEGORY}")

    # ============== Snooze ==============

    def snooze_request_id(self, alarm_id: str) -> str:
        return str(derive(f"snooze_{alarm_id}_{time_ns()}"))

    def schedule_snooze(self, alarm_id: str, minutes: int) -> None:
        request_id = self.snooze_request_id(alarm_id)
        content = NotificationContent(
            title="UNMUTE",
            body="Snoozed Alarm",
            category=ALARM_CATEGORY,
            user_info={"alarmId": alarm_id, "snoozed": True},
        )
        trigger = TimeIntervalTrigger(seconds=minutes * 60)
        self._spawn(self._register_snooze(request_id, trigger, content))

    async def _register_snooze(self, request_id: str, trigger: TimeIntervalTrigger, content: NotificationContent) -> None:
        try:
            await self.center.register(request_id, trigger, content)
            logger.info(f"Snooze {request_id} scheduled in {trigger.seconds:.0f}s")
        except Exception as e:
            logger.error(f"Failed to schedule snooze {request_id}: {e}")

