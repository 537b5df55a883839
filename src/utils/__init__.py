"""
Utility modules for the scheduling application.

This package contains shared utility functions and helpers used across
the application, including time conversion, interval overlap checks, and
database snapshot queries.
"""

from utils.datetime_utils import time_to_minutes, minutes_to_time, parse_date_string

__all__ = ['time_to_minutes', 'minutes_to_time', 'parse_date_string']
