"""
Availability aggregation.
Counts reservations per calendar day over the booking window and classifies
each day's load for the date picker.
"""

from datetime import date

from flask import current_app, has_app_context

from database import get_db
from utils.datetime_helpers import get_today, add_months, normalize_reservation_date
from .reservation_state import STATUS_CANCELLED


TIER_FULL = 'full'
TIER_BUSY = 'busy'
TIER_OPEN = 'open'

DEFAULT_WINDOW_MONTHS = 3
DEFAULT_FULL_THRESHOLD = 5
DEFAULT_BUSY_THRESHOLD = 3


def _setting(name: str, default):
    if has_app_context():
        return current_app.config.get(name, default)
    return default


# =============================================================================
# AGGREGATION
# =============================================================================

def get_availability(today: date = None) -> dict:
    """
    Count reservations per day from today up to (not including) the same day
    a few months ahead.

    Cancelled reservations do not take a slot. Days without reservations are
    absent from the result.

    Args:
        today: Reference date (default: today in the configured timezone)

    Returns:
        dict: {'YYYY-MM-DD': count}

    Raises:
        sqlite3.Error: If the query fails
    """
    today = today or get_today()
    months = _setting('AVAILABILITY_WINDOW_MONTHS', DEFAULT_WINDOW_MONTHS)
    window_end = add_months(today, months)

    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT substr(reservation_date, 1, 10) AS day, COUNT(*) AS count
        FROM reservations
        WHERE substr(reservation_date, 1, 10) >= ?
          AND substr(reservation_date, 1, 10) < ?
          AND status != ?
        GROUP BY day
        ORDER BY day
    ''', (today.isoformat(), window_end.isoformat(), STATUS_CANCELLED))

    return {row['day']: row['count'] for row in cursor.fetchall()}


def get_reservation_count_for_date(reservation_date) -> int:
    """
    Count non-cancelled reservations on a single day.

    Args:
        reservation_date: date or 'YYYY-MM-DD'

    Returns:
        int: Number of reservations
    """
    day = normalize_reservation_date(reservation_date)

    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT COUNT(*) AS count FROM reservations
        WHERE substr(reservation_date, 1, 10) = ?
          AND status != ?
    ''', (day, STATUS_CANCELLED))
    return cursor.fetchone()['count']


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_availability(count: int, full_threshold: int = None,
                          busy_threshold: int = None) -> str:
    """
    Classify a day's reservation count.

    Args:
        count: Reservations on the day
        full_threshold: Counts above this are full (default from config)
        busy_threshold: Counts at or above this are busy (default from config)

    Returns:
        str: 'full', 'busy' or 'open'
    """
    if full_threshold is None:
        full_threshold = _setting('AVAILABILITY_FULL_THRESHOLD', DEFAULT_FULL_THRESHOLD)
    if busy_threshold is None:
        busy_threshold = _setting('AVAILABILITY_BUSY_THRESHOLD', DEFAULT_BUSY_THRESHOLD)

    if count > full_threshold:
        return TIER_FULL
    if count >= busy_threshold:
        return TIER_BUSY
    return TIER_OPEN


def get_availability_tiers(today: date = None) -> dict:
    """
    Availability with each day's tier, for the date picker.

    Returns:
        dict: {'YYYY-MM-DD': {'count': int, 'tier': str}}
    """
    counts = get_availability(today)
    return {
        day: {'count': count, 'tier': classify_availability(count)}
        for day, count in counts.items()
    }


def is_date_available(reservation_date) -> bool:
    """
    Check that a day is not full.

    Args:
        reservation_date: date or 'YYYY-MM-DD'

    Returns:
        bool: True if the day can still take a reservation
    """
    count = get_reservation_count_for_date(reservation_date)
    return classify_availability(count) != TIER_FULL
