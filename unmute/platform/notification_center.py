"""In-process legacy notification queue built on APScheduler.

A flat set of requests keyed by string identifier, capped at a fixed
number of pending entries. Calendar triggers map onto cron matching;
non-repeating ones fire once at their first match.
"""
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from ..scheduler.schedule import device_timezone, now_utc
from ..scheduler.types import (
    CalendarTrigger,
    NotificationCategory,
    NotificationContent,
    TimeIntervalTrigger,
    Trigger,
)
from .alarm_manager import CRON_WEEKDAYS

logger = logger.bind(module="platform.notification_center")


class NotificationLimitError(Exception):
    """The pending request queue is full."""


class NotificationDelivery(Protocol):
    """Shows a delivered notification to the user."""

    async def deliver(self, request_id: str, content: NotificationContent) -> None:
        ...


class LoggingDelivery:
    """Delivery that writes notifications to the log."""

    async def deliver(self, request_id: str, content: NotificationContent) -> None:
        logger.info(f"⏰ {content.title}: {content.body} ({request_id})")


class ApschedulerNotificationCenter:
    """Legacy trigger primitive with an enumerable, capped request queue."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        *,
        capacity: int = 64,
        authorized: bool = True,
        delivery: NotificationDelivery | None = None,
        local_tz: tzinfo | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.local_tz = local_tz or device_timezone()
        self.scheduler = scheduler or AsyncIOScheduler(timezone=self.local_tz)
        self.capacity = capacity
        self.authorized = authorized
        self.delivery = delivery or LoggingDelivery()
        self.clock = clock
        self.categories: dict[str, NotificationCategory] = {}

    # ============== Lifecycle ==============

    def start(self, paused: bool = False) -> None:
        if not self.scheduler.running:
            self.scheduler.start(paused=paused)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def request_authorization(self) -> bool:
        return self.authorized

    def set_categories(self, categories: list[NotificationCategory]) -> None:
        self.categories = {c.identifier: c for c in categories}

    # ============== Requests ==============

    def _cron_for(self, trigger: CalendarTrigger) -> CronTrigger:
        return CronTrigger(
            year=trigger.year,
            month=trigger.month,
            day=trigger.day,
            day_of_week=CRON_WEEKDAYS[trigger.weekday - 1] if trigger.weekday else None,
            hour=trigger.hour,
            minute=trigger.minute,
            second=0,
            timezone=self.local_tz,
        )

    def _aps_trigger(self, trigger: Trigger) -> CronTrigger | DateTrigger:
        current = self.clock()
        if isinstance(trigger, TimeIntervalTrigger):
            return DateTrigger(run_date=current + timedelta(seconds=trigger.seconds))

        cron = self._cron_for(trigger)
        if trigger.repeats:
            return cron
        first = cron.get_next_fire_time(None, current.astimezone(self.local_tz))
        if first is None:
            raise ValueError(f"calendar trigger never matches: {trigger.to_dict()}")
        return DateTrigger(run_date=first)

    async def register(self, request_id: str, trigger: Trigger, payload: NotificationContent) -> None:
        if not self.authorized:
            raise PermissionError("notifications not authorized")
        if self.scheduler.get_job(request_id) is None and await self.count_pending() >= self.capacity:
            raise NotificationLimitError(f"{self.capacity} notifications already pending")
        self.scheduler.add_job(
            self._deliver,
            trigger=self._aps_trigger(trigger),
            id=request_id,
            args=[request_id, payload],
            replace_existing=True,
            misfire_grace_time=300,
        )

    def unregister(self, request_id: str) -> None:
        self.scheduler.remove_job(request_id)

    async def count_pending(self) -> int:
        return len(self.scheduler.get_jobs())

    def pending_ids(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs()]

    async def _deliver(self, request_id: str, content: NotificationContent) -> None:
        try:
            await self.delivery.deliver(request_id, content)
        except Exception as e:
            logger.error(f"Failed to deliver notification {request_id}: {e}")
