"""Timezone-aware date helpers.

Reservation dates are stored as date-only ``YYYY-MM-DD`` strings in the
configured timezone (UTC by default). Any timestamp received from a client is
converted to that timezone before it is truncated to a date.
"""

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = 'UTC'
    if has_app_context():
        tz_name = current_app.config.get('TIMEZONE', 'UTC')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def normalize_reservation_date(value) -> str:
    """
    Truncate a date or timestamp to the canonical reservation date.

    Args:
        value: date, datetime, 'YYYY-MM-DD' or ISO 8601 timestamp string

    Returns:
        str: 'YYYY-MM-DD'

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        text = str(value or '').strip()
        if not text:
            raise ValueError('Date is required')
        if len(text) == 10:
            return datetime.strptime(text, '%Y-%m-%d').date().isoformat()
        # fromisoformat before 3.11 rejects a trailing Z
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(get_timezone())
    return parsed.date().isoformat()
