"""Date manipulation utilities"""

from datetime import date


def whole_years_between(start: date, end: date) -> int:
    """Completed years from start to end (0 when end precedes start)"""
    if end <= start:
        return 0
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years
