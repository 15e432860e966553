"""In-process native alarm primitive built on APScheduler.

Registrations are APScheduler jobs keyed by the request UUID. When a job
fires, the alarm enters the `alerting` presentation state; snooze, pause
and resume drive the countdown states and push every change to the
injected renderer.
"""
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Protocol
from uuid import UUID

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from loguru import logger

from ..scheduler.schedule import device_timezone, next_occurrence, now_utc
from ..scheduler.types import (
    AlarmConfiguration,
    FixedInstant,
    PresentationMode,
    PresentationState,
    RecurrenceKind,
    ScheduleSpec,
)

logger = logger.bind(module="platform.alarm_manager")

CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


class AlarmScheduleError(Exception):
    """The primitive rejected a registration."""


class PresentationRenderer(Protocol):
    """Draws the live alarm UI; `state=None` dismisses it."""

    def render(self, alarm_id: str, state: PresentationState | None) -> None:
        ...


class LoggingRenderer:
    """Renderer that only logs state changes."""

    def render(self, alarm_id: str, state: PresentationState | None) -> None:
        if state is None:
            logger.info(f"Alarm {alarm_id} dismissed")
        else:
            logger.info(f"Alarm {alarm_id} -> {state.mode.value}")


class ApschedulerAlarmManager:
    """Native alarm primitive: weekly recurrence, countdown state, no cap."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        *,
        authorized: bool = True,
        renderer: PresentationRenderer | None = None,
        local_tz: tzinfo | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.local_tz = local_tz or device_timezone()
        self.scheduler = scheduler or AsyncIOScheduler(timezone=self.local_tz)
        self.authorized = authorized
        self.renderer = renderer or LoggingRenderer()
        self.clock = clock
        self._configurations: dict[str, AlarmConfiguration] = {}
        self._states: dict[str, PresentationState] = {}

    # ============== Lifecycle ==============

    def is_supported(self) -> bool:
        return True

    def start(self, paused: bool = False) -> None:
        if not self.scheduler.running:
            self.scheduler.start(paused=paused)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def request_authorization(self) -> bool:
        return self.authorized

    # ============== Registration ==============

    def _trigger_for(self, spec: ScheduleSpec) -> CronTrigger | DateTrigger:
        current = self.clock()
        if isinstance(spec, FixedInstant):
            if spec.at <= current:
                raise AlarmScheduleError(f"fire date {spec.at.isoformat()} already passed")
            return DateTrigger(run_date=spec.at)
        if spec.repeats.kind == RecurrenceKind.WEEKLY:
            return CronTrigger(
                day_of_week=CRON_WEEKDAYS[spec.repeats.weekday - 1],
                hour=spec.time.hour,
                minute=spec.time.minute,
                timezone=self.local_tz,
            )
        run_at = next_occurrence(spec.time.hour, spec.time.minute, current, self.local_tz)
        return DateTrigger(run_date=run_at)

    async def register(self, request_id: UUID, trigger: ScheduleSpec, payload: AlarmConfiguration) -> None:
        if not self.authorized:
            raise AlarmScheduleError("alarms not authorized")
        job_id = str(request_id)
        aps_trigger = self._trigger_for(trigger)
        self._configurations[job_id] = payload
        self.scheduler.add_job(
            self._alert,
            trigger=aps_trigger,
            id=job_id,
            args=[job_id],
            replace_existing=True,
            misfire_grace_time=300,
        )

    def unregister(self, request_id: UUID) -> None:
        job_id = str(request_id)
        self._configurations.pop(job_id, None)
        if self._states.pop(job_id, None) is not None:
            self._remove_countdown(job_id)
            self.renderer.render(job_id, None)
        self.scheduler.remove_job(job_id)

    async def count_pending(self) -> int:
        return sum(1 for job in self.scheduler.get_jobs() if not job.id.endswith("#countdown"))

    def configuration(self, request_id: UUID | str) -> AlarmConfiguration | None:
        return self._configurations.get(str(request_id))

    # ============== Presentation ==============

    def state(self, request_id: UUID | str) -> PresentationState | None:
        return self._states.get(str(request_id))

    def _set_state(self, job_id: str, state: PresentationState | None) -> None:
        if state is None:
            self._states.pop(job_id, None)
        else:
            self._states[job_id] = state
        self.renderer.render(job_id, state)

    async def _alert(self, job_id: str) -> None:
        logger.info(f"Alarm {job_id} firing")
        self._set_state(job_id, PresentationState.alerting())

    def _countdown_job_id(self, job_id: str) -> str:
        return f"{job_id}#countdown"

    def _remove_countdown(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(self._countdown_job_id(job_id))
        except JobLookupError:
            pass

    def _start_countdown(self, job_id: str, seconds: float) -> datetime:
        fire_at = self.clock() + timedelta(seconds=seconds)
        self.scheduler.add_job(
            self._alert,
            trigger=DateTrigger(run_date=fire_at),
            id=self._countdown_job_id(job_id),
            args=[job_id],
            replace_existing=True,
        )
        return fire_at

    def snooze(self, request_id: UUID | str) -> PresentationState:
        """Secondary button on an alerting alarm: count down, then alert again."""
        job_id = str(request_id)
        config = self._configurations.get(job_id)
        current = self._states.get(job_id)
        if config is None or not config.presentation.countdown_seconds:
            raise AlarmScheduleError(f"alarm {job_id} has no snooze countdown")
        if current is None or current.mode != PresentationMode.ALERTING:
            raise AlarmScheduleError(f"alarm {job_id} is not alerting")
        fire_at = self._start_countdown(job_id, config.presentation.countdown_seconds)
        state = PresentationState.counting_down(fire_at)
        self._set_state(job_id, state)
        return state

    def pause(self, request_id: UUID | str) -> PresentationState:
        job_id = str(request_id)
        current = self._states.get(job_id)
        config = self._configurations.get(job_id)
        if current is None or current.mode != PresentationMode.COUNTING_DOWN or config is None:
            raise AlarmScheduleError(f"alarm {job_id} is not counting down")
        total = float(config.presentation.countdown_seconds or 0)
        remaining = max((current.fire_at - self.clock()).total_seconds(), 0.0)
        self._remove_countdown(job_id)
        state = PresentationState.paused(elapsed=total - remaining, total=total)
        self._set_state(job_id, state)
        return state

    def resume(self, request_id: UUID | str) -> PresentationState:
        job_id = str(request_id)
        current = self._states.get(job_id)
        if current is None or current.mode != PresentationMode.PAUSED:
            raise AlarmScheduleError(f"alarm {job_id} is not paused")
        remaining = current.total_seconds - current.elapsed_seconds
        fire_at = self._start_countdown(job_id, remaining)
        state = PresentationState.counting_down(fire_at)
        self._set_state(job_id, state)
        return state

    def stop(self, request_id: UUID | str) -> None:
        job_id = str(request_id)
        self._remove_countdown(job_id)
        self._set_state(job_id, None)

