"""Alarm scheduling core.

- types.py: alarm options, schedule specs, trigger and presentation types
- models.py: alarm record and its derived projections
- identity.py: deterministic request identifiers
- schedule.py: schedule expansion
- backends/: native and legacy scheduler adapters
- selector.py: backend selection and scheduler context
"""
from .identity import derive
from .models import AlarmCreate, AlarmPatch, AlarmRecord
from .schedule import expand
from .selector import SchedulerContext, SchedulerSelector
from .types import AlarmKind, FutureRepeat, SnoozeDuration

__all__ = [
    "derive",
    "expand",
    "AlarmCreate",
    "AlarmPatch",
    "AlarmRecord",
    "AlarmKind",
    "FutureRepeat",
    "SnoozeDuration",
    "SchedulerContext",
    "SchedulerSelector",
]
