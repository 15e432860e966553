"""Backend adapters.

- base.py: shared adapter contract and trigger primitive protocol
- native.py: native alarm primitive (weekly recurrence, countdown, no cap)
- legacy.py: capped notification request queue
"""
from .base import AlarmScheduler, TriggerPrimitive
from .legacy import LegacyNotificationScheduler, NotificationCenter
from .native import AlarmManager, NativeAlarmScheduler

__all__ = [
    "AlarmScheduler",
    "TriggerPrimitive",
    "LegacyNotificationScheduler",
    "NotificationCenter",
    "NativeAlarmScheduler",
    "AlarmManager",
]
