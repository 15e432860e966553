"""Unmute daemon entry point.

    unmute run     load alarms, schedule them and keep running
    unmute list    print stored alarms with their previews
"""
import argparse
import asyncio
import signal
import sys

from loguru import logger

from .config import Settings, settings
from .platform import ApschedulerAlarmManager, ApschedulerNotificationCenter
from .scheduler.backends import LegacyNotificationScheduler, NativeAlarmScheduler
from .scheduler.schedule import device_timezone
from .scheduler.selector import SchedulerContext
from .scheduler.service import AlarmStore
from .services import AlarmService
from .services.timezones import default_directory


def configure_logging(config: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=config.log_level)
    if config.log_file:
        logger.add(config.log_file, level=config.log_level, rotation="10 MB", retention=5)


def build_context(
    config: Settings,
    alarm_manager: ApschedulerAlarmManager | None = None,
    notification_center: ApschedulerNotificationCenter | None = None,
) -> SchedulerContext:
    """Wire primitives, adapters and the selector once for the process."""
    local_tz = device_timezone()
    center = notification_center or ApschedulerNotificationCenter(
        capacity=config.notification_limit,
        authorized=config.notifications_authorized,
        local_tz=local_tz,
    )
    legacy = LegacyNotificationScheduler(center)

    native = None
    if config.backend != "legacy":
        manager = alarm_manager or ApschedulerAlarmManager(
            authorized=config.native_authorized,
            local_tz=local_tz,
        )
        native = NativeAlarmScheduler(manager, fallback=legacy)

    return SchedulerContext(legacy=legacy, native=native, mode=config.backend)


async def run(config: Settings) -> None:
    store = AlarmStore(config.data_dir)
    await store.initialize()

    context = build_context(config)
    service = AlarmService(
        store,
        context,
        notification_limit=config.notification_limit,
        limit_warning_threshold=config.limit_warning_threshold,
    )

    context.legacy.center.start()
    if context.native is not None:
        context.native.manager.start()

    await service.request_permission()
    service.setup_categories()

    await service.restore(store.list_alarms())
    logger.info(
        f"Unmute running with {service.scheduler.name} scheduler, "
        f"{len(store.list_alarms(include_disabled=False))} active alarms"
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass

    try:
        await stop.wait()
    finally:
        context.legacy.center.shutdown()
        if context.native is not None:
            context.native.manager.shutdown()
        logger.info("Unmute stopped")


async def list_alarms(config: Settings) -> None:
    store = AlarmStore(config.data_dir)
    await store.initialize()
    directory = default_directory()

    for record in store.list_alarms():
        parts = [record.formatted_time]
        if record.formatted_date:
            parts.append(record.formatted_date)
        if record.repeat_description:
            parts.append(record.repeat_description)
        if record.timezone:
            city = directory.city(record.timezone)
            parts.append(city.full_display if city else record.timezone)
        if record.formatted_local_fire_time:
            parts.append(record.formatted_local_fire_time)
        state = "on" if record.enabled else "off"
        print(f"[{state}] {record.label}: {' | '.join(parts)}  ({record.id})")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="unmute", description="Unmute alarm daemon")
    parser.add_argument("command", nargs="?", default="run", choices=["run", "list"])
    args = parser.parse_args(argv)

    configure_logging(settings)
    if args.command == "list":
        asyncio.run(list_alarms(settings))
    else:
        asyncio.run(run(settings))


if __name__ == "__main__":
    main()
