"""
Utility Functions

Timing helpers shared by the services and the stats endpoint.
"""

from .performance import timer, timer_context, get_tracker

__all__ = ['timer', 'timer_context', 'get_tracker']
