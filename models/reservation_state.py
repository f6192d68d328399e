"""
Reservation status management.
Statuses are changed manually by staff; the wizard only creates PENDING ones.
"""

from database import get_db


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'PENDING'
STATUS_CONFIRMED = 'CONFIRMED'
STATUS_CANCELLED = 'CANCELLED'

RESERVATION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED)

# A terminal reservation can no longer be edited through the wizard
TERMINAL_STATUSES = (STATUS_CANCELLED,)

VALID_TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_CANCELLED},
    STATUS_CANCELLED: set(),
}


# =============================================================================
# STATUS CHECKS
# =============================================================================

def is_terminal_status(status: str) -> bool:
    """Return True if a reservation in this status is closed for changes."""
    return status in TERMINAL_STATUSES


def can_transition(current_status: str, new_status: str) -> bool:
    """
    Check whether a status change is allowed.

    Args:
        current_status: Status the reservation is in
        new_status: Requested status

    Returns:
        bool: True if allowed
    """
    return new_status in VALID_TRANSITIONS.get(current_status, set())


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================

def change_reservation_status(reservation_id: int, new_status: str) -> bool:
    """
    Change the status of a reservation.

    Args:
        reservation_id: Reservation ID
        new_status: One of RESERVATION_STATUSES

    Returns:
        bool: False if the reservation does not exist

    Raises:
        ValueError: If the status is unknown or the transition is not allowed
    """
    if new_status not in RESERVATION_STATUSES:
        raise ValueError(f'Unknown status: {new_status}')

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('SELECT status FROM reservations WHERE id = ?', (reservation_id,))
        row = cursor.fetchone()
        if not row:
            return False

        current_status = row['status']
        if current_status == new_status:
            return True

        if not can_transition(current_status, new_status):
            raise ValueError(f'Cannot change status from {current_status} to {new_status}')

        cursor.execute('''
            UPDATE reservations
            SET status = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (new_status, reservation_id))

        db.commit()
        return True

    except Exception:
        db.rollback()
        raise
