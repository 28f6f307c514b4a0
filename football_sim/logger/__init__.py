"""
Event logging for football match simulation.
Provides PM4Py-compatible event logs for process mining analysis.
"""

from .event_logger import MatchEventLog

__all__ = ['MatchEventLog']
