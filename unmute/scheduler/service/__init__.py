"""Scheduler service package.

- store.py: YAML persistence for alarm records
"""
from .store import AlarmStore

__all__ = ["AlarmStore"]
