"""Services

- alarm_service.py: alarm create/update/delete/toggle orchestration
- timezones.py: timezone lookup for display
"""
from .alarm_service import AlarmService
from .timezones import TimezoneCity, TimezoneDirectory

__all__ = ["AlarmService", "TimezoneCity", "TimezoneDirectory"]
