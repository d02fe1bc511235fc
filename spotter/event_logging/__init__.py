"""
Event logging for Spotter.

Structured JSONL logs of confirmations, sequence steps, watchdog fires and
session changes.
"""

from .event_logger import EventLogger

__all__ = ['EventLogger']
