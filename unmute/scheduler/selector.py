"""Backend selection and the scheduler context.

The selector checks native capability once and memoizes the result for the
process lifetime. `SchedulerContext` is the single object the orchestrator
receives at startup instead of reaching for global instances.
"""
import threading
from dataclasses import dataclass, field

from loguru import logger

from .backends import AlarmScheduler, LegacyNotificationScheduler, NativeAlarmScheduler

logger = logger.bind(module="scheduler.selector")


class SchedulerSelector:
    """Picks the native scheduler when available, else the legacy one."""

    def __init__(
        self,
        legacy: LegacyNotificationScheduler,
        native: NativeAlarmScheduler | None = None,
        mode: str = "auto",
    ):
        """
        Args:
            legacy: Scheduler used when native alarms are unavailable
            native: Native scheduler, None when the platform has none
            mode: auto / native / legacy
        """
        self.legacy = legacy
        self.native = native
        self.mode = mode
        self._selected: AlarmScheduler | None = None
        self._lock = threading.Lock()

    def _native_supported(self) -> bool:
        if self.mode == "legacy" or self.native is None:
            return False
        return self.native.is_available()

    def select(self) -> AlarmScheduler:
        """Return the scheduler for this process (checked once)."""
        if self._selected is None:
            with self._lock:
                if self._selected is None:
                    if self._native_supported():
                        self._selected = self.native
                    else:
                        if self.mode == "native":
                            logger.warning("Native alarms requested but unavailable, using legacy")
                        self._selected = self.legacy
                    logger.info(f"Selected {self._selected.name} alarm scheduler")
        return self._selected


@dataclass
class SchedulerContext:
    """Process-wide scheduling state handed to the orchestrator."""
    legacy: LegacyNotificationScheduler
    native: NativeAlarmScheduler | None = None
    mode: str = "auto"
    selector: SchedulerSelector = field(init=False)

    def __post_init__(self) -> None:
        self.selector = SchedulerSelector(self.legacy, self.native, self.mode)

    @property
    def scheduler(self) -> AlarmScheduler:
        return self.selector.select()
