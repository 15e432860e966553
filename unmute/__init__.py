"""Unmute - alarm scheduling daemon"""

__version__ = "0.1.1"
