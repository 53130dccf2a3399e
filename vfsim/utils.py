"""
Display helpers for sizes and timestamps
"""

from datetime import datetime

SIZE_UNITS = ('KB', 'MB', 'GB')


def format_size(size: int) -> str:
    """Human readable byte count: ``512 B``, ``1.50 KB``, ``2.00 MB``"""
    if size < 1024:
        return f"{size} B"

    value = float(size)
    for unit in SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"


def format_date(moment: datetime) -> str:
    """Long form date, e.g. ``Mar 7, 2024, 09:05 PM``"""
    return f"{moment:%b} {moment.day}, {moment:%Y, %I:%M %p}"


def format_listing_date(moment: datetime) -> str:
    """Short date used by directory listings, e.g. ``Mar 07, 09:05 PM``"""
    return moment.strftime('%b %d, %I:%M %p')
