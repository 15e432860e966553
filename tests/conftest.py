"""Shared fixtures: in-memory trigger primitives and a fixed device zone."""
import pytest

from unmute.config import settings
from unmute.scheduler.backends import LegacyNotificationScheduler, NativeAlarmScheduler
from unmute.scheduler.selector import SchedulerContext


class FakePrimitive:
    """In-memory trigger primitive recording every call."""

    def __init__(self, authorized: bool = True):
        self.authorized = authorized
        self.registrations: dict = {}
        self.unregistered: list = []
        self.fail_ids: set = set()
        self.auth_requests = 0

    async def request_authorization(self) -> bool:
        self.auth_requests += 1
        return self.authorized

    async def register(self, request_id, trigger, payload) -> None:
        if request_id in self.fail_ids:
            raise RuntimeError(f"rejected {request_id}")
        self.registrations[request_id] = (trigger, payload)

    def unregister(self, request_id) -> None:
        self.unregistered.append(request_id)
        if request_id not in self.registrations:
            raise KeyError(request_id)
        del self.registrations[request_id]

    async def count_pending(self) -> int:
        return len(self.registrations)


class FakeNotificationCenter(FakePrimitive):
    def __init__(self, authorized: bool = True):
        super().__init__(authorized)
        self.categories: list = []

    def set_categories(self, categories) -> None:
        self.categories = list(categories)


class FakeAlarmManager(FakePrimitive):
    def __init__(self, authorized: bool = True, supported: bool = True):
        super().__init__(authorized)
        self.supported = supported
        self.support_checks = 0

    def is_supported(self) -> bool:
        self.support_checks += 1
        return self.supported


@pytest.fixture(autouse=True)
def utc_device(monkeypatch):
    """Pin the device zone so expansions are deterministic."""
    monkeypatch.setattr(settings, "local_timezone", "UTC")


@pytest.fixture
def make_center():
    """Factory for extra in-memory notification centers."""
    return FakeNotificationCenter


@pytest.fixture
def make_manager():
    """Factory for extra in-memory alarm managers."""
    return FakeAlarmManager


@pytest.fixture
def center(make_center):
    return make_center()


@pytest.fixture
def manager(make_manager):
    return make_manager()


@pytest.fixture
def legacy(center):
    return LegacyNotificationScheduler(center)


@pytest.fixture
def native(manager, legacy):
    return NativeAlarmScheduler(manager, fallback=legacy)


@pytest.fixture
def legacy_context(legacy):
    return SchedulerContext(legacy=legacy, native=None, mode="legacy")


@pytest.fixture
def native_context(legacy, native):
    return SchedulerContext(legacy=legacy, native=native, mode="auto")
