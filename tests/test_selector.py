"""Tests for backend selection."""
from unmute.scheduler.backends import NativeAlarmScheduler
from unmute.scheduler.selector import SchedulerContext, SchedulerSelector


def test_prefers_native_when_supported(legacy, native):
    """Native wins when the platform supports it."""
    assert SchedulerSelector(legacy, native).select() is native


def test_legacy_when_native_unsupported(legacy, make_manager):
    """Unsupported native alarms select the legacy scheduler."""
    native = NativeAlarmScheduler(make_manager(supported=False), fallback=legacy)
    assert SchedulerSelector(legacy, native).select() is legacy


def test_legacy_when_platform_has_no_native(legacy):
    """Without a native scheduler the legacy one is used."""
    assert SchedulerSelector(legacy, None).select() is legacy


def test_forced_legacy_mode_skips_support_check(legacy, native, manager):
    """Legacy mode never checks native support."""
    assert SchedulerSelector(legacy, native, mode="legacy").select() is legacy
    assert manager.support_checks == 0


def test_forced_native_mode_still_needs_support(legacy, make_manager):
    """Native mode falls back when native alarms are unavailable."""
    native = NativeAlarmScheduler(make_manager(supported=False), fallback=legacy)
    assert SchedulerSelector(legacy, native, mode="native").select() is legacy


def test_support_check_is_memoized(legacy, native, manager):
    """Support is checked once per selector."""
    selector = SchedulerSelector(legacy, native)
    first = selector.select()
    manager.supported = False

    assert selector.select() is first
    assert manager.support_checks == 1


def test_failing_support_check_selects_legacy(legacy, native, manager):
    """A failing support check counts as unsupported."""
    def broken() -> bool:
        raise RuntimeError("framework missing")

    manager.is_supported = broken
    assert SchedulerSelector(legacy, native).select() is legacy


def test_context_exposes_selected_scheduler(native_context, native, legacy_context, legacy):
    """The context hands out the selected scheduler."""
    assert native_context.scheduler is native
    assert legacy_context.scheduler is legacy


def test_context_builds_its_own_selector(legacy):
    """A context without native alarms selects legacy."""
    context = SchedulerContext(legacy=legacy)
    assert context.selector.legacy is legacy
    assert context.scheduler is legacy
