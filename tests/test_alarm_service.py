"""Tests for the alarm service orchestration."""
import asyncio
from datetime import date, datetime, timezone

import pytest

from unmute.config import settings
from unmute.scheduler.backends import LegacyNotificationScheduler
from unmute.scheduler.identity import instance_id
from unmute.scheduler.models import AlarmPatch, AlarmRecord
from unmute.scheduler.selector import SchedulerContext
from unmute.scheduler.service import AlarmStore
from unmute.scheduler.types import AlarmKind, FutureRepeat
from unmute.services import AlarmService

UTC = timezone.utc


@pytest.fixture
def store(tmp_path):
    return AlarmStore(tmp_path)


@pytest.fixture
def service(store, legacy_context):
    return AlarmService(store, legacy_context, notification_limit=64, limit_warning_threshold=60)


def weekend_alarm() -> AlarmRecord:
    return AlarmRecord(label="Weekend", hour=7, minute=30, repeat_days=[1, 7])


def future_alarm(target: date, repeat=FutureRepeat.NONE) -> AlarmRecord:
    return AlarmRecord(kind=AlarmKind.FUTURE, hour=9, minute=0, target_date=target,
                       future_repeat=repeat, timezone="UTC")


class TestLifecycle:
    """Create, edit, toggle and delete."""

    @pytest.mark.asyncio
    async def test_toggle_off_and_on_restores_same_ids(self, service, store, center):
        """Weekend alarm: 2 requests, 0 when off, the same 2 when back on."""
        record = weekend_alarm()
        await service.add_alarm(record)

        ids = set(center.registrations)
        assert record.repeat_description == "Weekends"
        assert ids == {str(instance_id(record.schedule_seed, i)) for i in range(2)}
        assert store.get(record.id) is record

        await service.toggle_alarm(record)
        assert record.enabled is False
        assert center.registrations == {}
        assert service.pending_count == 0

        await service.toggle_alarm(record)
        assert record.enabled is True
        assert set(center.registrations) == ids

    @pytest.mark.asyncio
    async def test_update_with_patch(self, service, center):
        """Updating days and hour re-registers with the new values."""
        record = weekend_alarm()
        await service.add_alarm(record)

        await service.update_alarm(record, AlarmPatch(repeat_days=[4], hour=10))

        (trigger, _), = center.registrations.values()
        assert trigger.weekday == 4
        assert trigger.hour == 10

    @pytest.mark.asyncio
    async def test_delete_cancels_and_forgets(self, service, store, center, tmp_path):
        """Delete removes the requests and the stored record."""
        record = weekend_alarm()
        await service.add_alarm(record)

        service.delete_alarm(record)

        assert center.registrations == {}
        assert store.get(record.id) is None

        reloaded = AlarmStore(tmp_path)
        await reloaded.initialize()
        assert reloaded.list_alarms() == []

    @pytest.mark.asyncio
    async def test_reschedule_all_skips_disabled(self, service, center):
        """Only enabled alarms are scheduled on reschedule."""
        on, off = weekend_alarm(), AlarmRecord(enabled=False)

        await service.reschedule_all([on, off])

        assert len(center.registrations) == 2
        assert service.pending_count == 2


class TestNotificationLimit:
    """Pending-count warnings."""

    @pytest.mark.asyncio
    async def test_warning_and_limit(self, store, legacy_context):
        """Warning at the threshold, limit reached at the cap."""
        service = AlarmService(store, legacy_context, notification_limit=5, limit_warning_threshold=3)

        await service.add_alarm(weekend_alarm())
        assert service.show_limit_warning is False
        assert await service.is_at_limit() is False

        await service.add_alarm(AlarmRecord(repeat_days=[2, 3, 4]))
        assert service.pending_count == 5
        assert service.show_limit_warning is True
        assert await service.is_at_limit() is True

    @pytest.mark.asyncio
    async def test_native_never_warns(self, store, native_context):
        """Native scheduler reports no pending count to warn about."""
        service = AlarmService(store, native_context, notification_limit=1, limit_warning_threshold=1)
        await service.add_alarm(AlarmRecord(repeat_days=[1, 2, 3, 4, 5, 6, 7]))

        assert service.pending_count == 0
        assert service.show_limit_warning is False

    def test_explicit_zero_limits_are_kept(self, store, legacy_context):
        """Zero is a real limit, not a missing one."""
        service = AlarmService(store, legacy_context, notification_limit=0, limit_warning_threshold=0)
        assert service.notification_limit == 0
        assert service.limit_warning_threshold == 0

    def test_limits_default_to_settings(self, store, legacy_context):
        """Unset limits come from the settings."""
        service = AlarmService(store, legacy_context)
        assert service.notification_limit == settings.notification_limit
        assert service.limit_warning_threshold == settings.limit_warning_threshold


class TestPermissionAndCategories:
    """Permission prompt and notification actions."""

    @pytest.mark.asyncio
    async def test_denied_permission_sets_flag(self, store, make_center):
        """A denied prompt is surfaced through permission_denied."""
        legacy = LegacyNotificationScheduler(make_center(authorized=False))
        service = AlarmService(store, SchedulerContext(legacy=legacy, mode="legacy"))

        assert await service.request_permission() is False
        assert service.permission_denied is True

    @pytest.mark.asyncio
    async def test_granted_permission(self, service):
        """A granted prompt clears permission_denied."""
        assert await service.request_permission() is True
        assert service.permission_denied is False

    def test_categories_only_with_capability(self, store, legacy_context, native_context, center):
        """Categories are registered only by schedulers that support them."""
        AlarmService(store, native_context).setup_categories()
        assert center.categories == []

        AlarmService(store, legacy_context).setup_categories()
        assert len(center.categories) == 1


class TestElapsedAndRecurring:
    """Launch-time handling of past fire dates."""

    def test_disable_fired_one_shots(self, service, store, center):
        """Only one-shot future alarms in the past are disabled."""
        past = future_alarm(date(2026, 1, 1))
        upcoming = future_alarm(date(2026, 6, 1))
        monthly = future_alarm(date(2026, 1, 1), FutureRepeat.MONTHLY)
        for record in (past, upcoming, monthly):
            store.insert(record)

        disabled = service.disable_fired_alarms(
            [past, upcoming, monthly], now=datetime(2026, 3, 1, tzinfo=UTC)
        )

        assert disabled == [past]
        assert past.enabled is False
        assert upcoming.enabled is True
        assert monthly.enabled is True
        assert str(instance_id(past.schedule_seed, 0)) in center.unregistered

    @pytest.mark.asyncio
    async def test_rearm_only_elapsed_recurring(self, service, center):
        """Only elapsed monthly/yearly alarms are re-armed."""
        elapsed = future_alarm(date(2026, 1, 15), FutureRepeat.MONTHLY)
        upcoming = future_alarm(date(2026, 6, 1), FutureRepeat.YEARLY)
        one_shot = future_alarm(date(2026, 1, 1))

        rearmed = await service.rearm_recurring(
            [elapsed, upcoming, one_shot], now=datetime(2026, 3, 1, tzinfo=UTC)
        )

        assert rearmed == [elapsed]
        (trigger, _), = center.registrations.values()
        assert trigger.repeats is True
        assert trigger.day == 15

    @pytest.mark.asyncio
    async def test_restore_schedules_each_alarm_once(self, service, store, center):
        """Launch restore schedules every alarm exactly once."""
        elapsed = future_alarm(date(2026, 1, 15), FutureRepeat.MONTHLY)
        weekend = weekend_alarm()
        past = future_alarm(date(2026, 1, 1))
        for record in (elapsed, weekend, past):
            store.insert(record)

        await service.restore([elapsed, weekend, past], now=datetime(2026, 3, 1, tzinfo=UTC))

        assert center.unregistered.count(elapsed.schedule_seed) == 1
        assert center.unregistered.count(weekend.schedule_seed) == 1
        assert past.enabled is False
        assert len(center.registrations) == 3
        assert service.pending_count == 3


class TestSnooze:
    """Snooze through the orchestrator."""

    @pytest.mark.asyncio
    async def test_snooze_registers_on_legacy(self, service, center):
        """Snooze registers an interval request of the snooze duration."""
        service.snooze(AlarmRecord(snooze_duration=5))
        await asyncio.sleep(0)

        (trigger, _), = center.registrations.values()
        assert trigger.seconds == 300

    @pytest.mark.asyncio
    async def test_snooze_disabled(self, service, center):
        """Alarms without snooze register nothing."""
        service.snooze(AlarmRecord(snooze_enabled=False))
        await asyncio.sleep(0)
        assert center.registrations == {}
