"""Native alarm scheduler.

Uses the platform alarm primitive: rich weekly recurrence, a live countdown
presentation for snooze and no enumerable request cap. When the primitive
is not authorized, scheduling silently falls back to the legacy scheduler.
"""
from collections.abc import Hashable
from typing import Protocol
from uuid import UUID

from loguru import logger

from ..models import AlarmRecord
from ..types import (
    AlarmConfiguration,
    AlarmPresentation,
    Capability,
    ScheduleSpec,
)
from .base import AlarmScheduler

logger = logger.bind(module="scheduler.backends.native")

DEFAULT_TITLE = "UNMUTE"


class AlarmManager(Protocol):
    """Native trigger primitive."""

    async def request_authorization(self) -> bool:
        ...

    async def register(self, request_id: UUID, trigger: ScheduleSpec, payload: AlarmConfiguration) -> None:
        ...

    def unregister(self, request_id: UUID) -> None:
        ...

    async def count_pending(self) -> int:
        ...

    def is_supported(self) -> bool:
        ...


def make_configuration(record: AlarmRecord) -> AlarmConfiguration:
    """Initial presentation and countdown for one registration."""
    countdown = record.snooze_duration.value * 60 if record.snooze_enabled else None
    return AlarmConfiguration(
        presentation=AlarmPresentation(
            title=record.label or DEFAULT_TITLE,
            snooze_enabled=record.snooze_enabled,
            countdown_seconds=countdown,
        ),
        metadata={
            "alarm_id": record.id,
            "snooze_duration": record.snooze_duration.value,
        },
    )


class NativeAlarmScheduler(AlarmScheduler):
    """Scheduler backed by the native alarm primitive."""

    name = "native"
    capabilities = frozenset({Capability.COUNTDOWN})

    def __init__(self, manager: AlarmManager, fallback: AlarmScheduler):
        """
        Args:
            manager: Native alarm primitive
            fallback: Scheduler used when the native primitive is not authorized
        """
        super().__init__()
        self.manager = manager
        self.fallback = fallback

    def is_available(self) -> bool:
        try:
            return bool(self.manager.is_supported())
        except Exception as e:
            logger.warning(f"Native alarm capability check failed: {e}")
            return False

    # ============== Permission ==============

    async def request_permission(self) -> bool:
        try:
            return await self.manager.request_authorization()
        except Exception as e:
            logger.error(f"Permission error: {e}")
            return False

    # ============== Schedule ==============

    async def schedule(self, record: AlarmRecord) -> None:
        self.cancel(record)
        if not record.enabled:
            return

        # Authorization is checked on every call; an unauthorized primitive
        # hands the alarm to the notification queue instead of failing.
        if not await self.request_permission():
            logger.warning(f"Not authorized, falling back to {self.fallback.name} for alarm {record.id}")
            await self.fallback.schedule(record)
            return

        await self._register_all(record)

    async def _register(self, record: AlarmRecord, request_id: Hashable, spec: ScheduleSpec) -> None:
        await self.manager.register(request_id, spec, make_configuration(record))

    # ============== Cancel ==============

    def cancel(self, record: AlarmRecord) -> None:
        for request_id in self.request_ids(record):
            self._unregister_quietly(self.manager, request_id)
        self.fallback.cancel(record)

    # ============== Pending count ==============

    async def pending_count(self) -> int:
        # No request cap to warn about
        return 0

    # ============== Snooze ==============

    def schedule_snooze(self, alarm_id: str, minutes: int) -> None:
        # The countdown presentation handles snooze on its own
        logger.debug(f"Snooze for {alarm_id} is handled by the alarm presentation")
