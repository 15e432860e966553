"""Alarm service.

Sequences permission, persistence and backend scheduling for alarm
create/update/delete/toggle, and tracks how close the legacy queue is to
its cap.
"""
from datetime import datetime

from loguru import logger

from ..config import settings
from ..scheduler.backends import AlarmScheduler
from ..scheduler.models import AlarmPatch, AlarmRecord
from ..scheduler.schedule import now_utc
from ..scheduler.selector import SchedulerContext
from ..scheduler.service import AlarmStore
from ..scheduler.types import AlarmKind, Capability, FutureRepeat

logger = logger.bind(module="services.alarm_service")


class AlarmService:
    """Alarm service

    Glue between the alarm store and the selected scheduler. Never issues
    two concurrent schedule calls for the same alarm.
    """

    def __init__(
        self,
        store: AlarmStore,
        context: SchedulerContext,
        notification_limit: int | None = None,
        limit_warning_threshold: int | None = None,
    ):
        self.store = store
        self.context = context
        self.notification_limit = (
            settings.notification_limit if notification_limit is None else notification_limit
        )
        self.limit_warning_threshold = (
            settings.limit_warning_threshold if limit_warning_threshold is None else limit_warning_threshold
        )

        self.permission_denied = False
        self.show_limit_warning = False
        self.pending_count = 0

    @property
    def scheduler(self) -> AlarmScheduler:
        return self.context.scheduler

    # ============== Permission ==============

    async def request_permission(self) -> bool:
        granted = await self.scheduler.request_permission()
        self.permission_denied = not granted
        if not granted:
            logger.warning(f"{self.scheduler.name} permission denied")
        return granted

    def setup_categories(self) -> None:
        if self.scheduler.supports(Capability.NOTIFICATION_CATEGORIES):
            self.scheduler.register_categories()

    # ============== CRUD ==============

    async def add_alarm(self, record: AlarmRecord) -> None:
        self.store.insert(record)
        self.store.save()
        await self.scheduler.schedule(record)
        await self.check_limit()
        logger.info(f"Added alarm {record.id} ('{record.label}') at {record.formatted_time}")

    async def update_alarm(self, record: AlarmRecord, patch: AlarmPatch | None = None) -> None:
        if patch is not None:
            patch.apply(record)
        self.store.save()
        await self.scheduler.schedule(record)
        await self.check_limit()
        logger.info(f"Updated alarm {record.id}")

    def delete_alarm(self, record: AlarmRecord) -> None:
        self.scheduler.cancel(record)
        self.store.delete(record)
        self.store.save()
        logger.info(f"Deleted alarm {record.id}")

    async def toggle_alarm(self, record: AlarmRecord) -> None:
        record.enabled = not record.enabled
        self.store.save()

        if record.enabled:
            await self.scheduler.schedule(record)
        else:
            self.scheduler.cancel(record)
        await self.check_limit()
        logger.info(f"Alarm {record.id} {'enabled' if record.enabled else 'disabled'}")

    # ============== Scheduling ==============

    async def reschedule_all(self, records: list[AlarmRecord]) -> None:
        for record in records:
            if record.enabled:
                await self.scheduler.schedule(record)
        await self.check_limit()

    async def rearm_recurring(self, records: list[AlarmRecord], now: datetime | None = None) -> list[AlarmRecord]:
        """Re-register monthly/yearly future alarms whose target already passed.

        The scheduler advances their fixed instant to the next occurrence.
        Returns the re-armed records.
        """
        current = now or now_utc()
        rearmed = []
        for record in records:
            if not (record.enabled
                    and record.kind == AlarmKind.FUTURE
                    and record.future_repeat in (FutureRepeat.MONTHLY, FutureRepeat.YEARLY)):
                continue
            fire = record.fire_date
            if fire is None or fire > current:
                continue
            await self.scheduler.schedule(record)
            rearmed.append(record)
        if rearmed:
            logger.info(f"Re-armed {len(rearmed)} recurring future alarms")
        return rearmed

    async def restore(self, records: list[AlarmRecord], now: datetime | None = None) -> None:
        """Launch sequence: disable elapsed one-shots, re-arm recurring, schedule the rest.

        Each alarm is scheduled at most once.
        """
        self.disable_fired_alarms(records, now)
        rearmed = {r.id for r in await self.rearm_recurring(records, now)}
        await self.reschedule_all([r for r in records if r.id not in rearmed])

    def snooze(self, record: AlarmRecord) -> None:
        if not record.snooze_enabled:
            return
        self.scheduler.schedule_snooze(record.id, record.snooze_duration.value)

    # ============== Notification Limit ==============

    async def check_limit(self) -> int:
        count = await self.scheduler.pending_count()
        self.pending_count = count
        self.show_limit_warning = count >= self.limit_warning_threshold
        if self.show_limit_warning:
            logger.warning(f"{count} notifications pending (limit {self.notification_limit})")
        return count

    async def is_at_limit(self) -> bool:
        count = await self.scheduler.pending_count()
        return count >= self.notification_limit

    # ============== Elapsed Alarms ==============

    def disable_fired_alarms(self, records: list[AlarmRecord], now: datetime | None = None) -> list[AlarmRecord]:
        """Disable one-shot future alarms whose fire date has passed."""
        current = now or now_utc()
        disabled = []
        for record in records:
            if not (record.enabled
                    and record.kind == AlarmKind.FUTURE
                    and record.future_repeat == FutureRepeat.NONE):
                continue
            fire = record.fire_date
            if fire is None or fire >= current:
                continue
            record.enabled = False
            self.scheduler.cancel(record)
            disabled.append(record)
        self.store.save()
        if disabled:
            logger.info(f"Disabled {len(disabled)} elapsed alarms")
        return disabled
