"""Backend adapter contract and trigger primitive protocols.

Every backend adapter implements the same contract so the rest of the
system never needs to know which one is active. Behavior specific to one
backend is advertised through `capabilities`.
"""
import asyncio
from abc import ABC, abstractmethod
from collections.abc import Hashable
from typing import Any, Awaitable, Protocol

from loguru import logger

from ..identity import instance_id
from ..models import AlarmRecord
from ..schedule import cancellation_slots, expand, now_utc
from ..types import Capability, ScheduleSpec

logger = logger.bind(module="scheduler.backends")


# ============== Protocol Definitions ==============

class TriggerPrimitive(Protocol):
    """OS-level scheduling primitive wrapped by an adapter."""

    async def request_authorization(self) -> bool:
        """Ask the user for permission; True when granted."""
        ...

    async def register(self, request_id: Any, trigger: Any, payload: Any) -> None:
        """Register one trigger. Raises on failure."""
        ...

    def unregister(self, request_id: Any) -> None:
        """Remove one trigger. May raise LookupError when the id is unknown."""
        ...

    async def count_pending(self) -> int:
        """Number of live registrations."""
        ...


# ============== Adapter Contract ==============

class AlarmScheduler(ABC):
    """Registers and cancels the concrete triggers of alarm records."""

    name: str = "base"
    capabilities: frozenset[Capability] = frozenset()

    def __init__(self) -> None:
        self._background: set[asyncio.Task] = set()

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @abstractmethod
    async def request_permission(self) -> bool:
        """Request the system permission this backend needs."""

    async def schedule(self, record: AlarmRecord) -> None:
        """Schedule (or re-schedule) every trigger of an alarm.

        Old registrations are retracted before new ones are made. Nothing is
        registered for a disabled alarm.
        """
        self.cancel(record)
        if not record.enabled:
            logger.debug(f"[{self.name}] Alarm {record.id} disabled, nothing to register")
            return
        await self._register_all(record)

    @abstractmethod
    def cancel(self, record: AlarmRecord) -> None:
        """Retract every registration this alarm may have, now or earlier."""

    @abstractmethod
    async def pending_count(self) -> int:
        """Number of currently pending requests (used for limit warnings)."""

    @abstractmethod
    def schedule_snooze(self, alarm_id: str, minutes: int) -> None:
        """Schedule a one-shot snooze `minutes` from now."""

    def register_categories(self) -> None:
        """Register notification actions; only meaningful with NOTIFICATION_CATEGORIES."""

    # ============== Shared Helpers ==============

    async def _register_all(self, record: AlarmRecord) -> int:
        """Register one request per spec; returns how many landed."""
        specs = expand(record, now=now_utc())
        results = await asyncio.gather(
            *(self._register_slot(record, index, spec) for index, spec in enumerate(specs))
        )
        landed = sum(1 for ok in results if ok)
        logger.info(
            f"[{self.name}] Scheduled alarm {record.id} ('{record.label}'): "
            f"{landed}/{len(specs)} registrations"
        )
        return landed

    async def _register_slot(self, record: AlarmRecord, index: int, spec: ScheduleSpec) -> bool:
        request_id = self.request_id(record, index)
        try:
            await self._register(record, request_id, spec)
        except Exception as e:
            logger.error(
                f"[{self.name}] Failed to register {request_id} for alarm {record.id} "
                f"({spec.to_dict()}): {e}"
            )
            return False
        logger.debug(f"[{self.name}] Registered {request_id}: {spec.to_dict()}")
        return True

    @abstractmethod
    async def _register(self, record: AlarmRecord, request_id: Hashable, spec: ScheduleSpec) -> None:
        """Register a single spec with the primitive. Raises on failure."""

    def request_id(self, record: AlarmRecord, index: int) -> Hashable:
        return instance_id(record.schedule_seed, index)

    def request_ids(self, record: AlarmRecord) -> list[Hashable]:
        """Every id slot that may hold a registration of this alarm."""
        return [self.request_id(record, i) for i in range(cancellation_slots(record))]

    def _unregister_quietly(self, primitive: TriggerPrimitive, request_id: Hashable) -> None:
        try:
            primitive.unregister(request_id)
        except (LookupError, ValueError):
            pass
        except Exception as e:
            logger.warning(f"[{self.name}] Unregister {request_id} failed: {e}")

    def _spawn(self, coro: Awaitable[Any]) -> None:
        """Run a coroutine without making the caller wait for it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"[{self.name}] No running event loop, dropping background request")
            if asyncio.iscoroutine(coro):
                coro.close()
            return
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
