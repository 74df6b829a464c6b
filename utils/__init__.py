"""
Utility modules for the course monitor.
"""

from .schedule import parse_interval, describe_interval

__all__ = ['parse_interval', 'describe_interval']
