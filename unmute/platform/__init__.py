"""In-process trigger primitives.

- alarm_manager.py: native alarms with countdown presentation state
- notification_center.py: capped legacy notification queue
"""
from .alarm_manager import (
    AlarmScheduleError,
    ApschedulerAlarmManager,
    LoggingRenderer,
    PresentationRenderer,
)
from .notification_center import (
    ApschedulerNotificationCenter,
    LoggingDelivery,
    NotificationDelivery,
    NotificationLimitError,
)

__all__ = [
    "AlarmScheduleError",
    "ApschedulerAlarmManager",
    "LoggingRenderer",
    "PresentationRenderer",
    "ApschedulerNotificationCenter",
    "LoggingDelivery",
    "NotificationDelivery",
    "NotificationLimitError",
]
