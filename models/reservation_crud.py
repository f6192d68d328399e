"""
Reservation CRUD operations.
Handles create, read and update for reservations. Reservations are never
deleted; cancellation is a status change (see reservation_state.py).

Line items are stored as JSON lists of {"key", "quantity", "priceAtBooking"}
and the extra field as {"deliveryFee", "addOns"}. Prices are captured when the
reservation is written and never re-read from the catalog.
"""

import json
import logging

from database import get_db
from .reservation_state import STATUS_PENDING, STATUS_CANCELLED, is_terminal_status

logger = logging.getLogger(__name__)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _normalize_line_items(items) -> list:
    """
    Validate and copy a list of line items into the stored shape.

    Raises:
        ValueError: If a key is missing, quantity < 1 or price < 0
    """
    normalized = []
    for item in items or []:
        key = item.get('key')
        quantity = item.get('quantity', 1)
        price = item.get('priceAtBooking')

        if not key:
            raise ValueError('Line item key is required')
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f'Invalid quantity for {key}: {quantity}')
        if price is None or price < 0:
            raise ValueError(f'Invalid price for {key}: {price}')

        normalized.append({'key': key, 'quantity': quantity, 'priceAtBooking': price})
    return normalized


def _normalize_extra(extra) -> dict:
    extra = extra or {}
    delivery_fee = extra.get('deliveryFee') or 0
    if delivery_fee < 0:
        raise ValueError(f'Invalid delivery fee: {delivery_fee}')
    return {
        'deliveryFee': delivery_fee,
        'addOns': _normalize_line_items(extra.get('addOns')),
    }


def _row_to_reservation(row) -> dict:
    """Convert a reservations row into a dict with decoded JSON fields."""
    reservation = dict(row)
    reservation['items'] = json.loads(reservation['items'] or '[]')
    reservation['optional_items'] = json.loads(reservation['optional_items'] or '[]')
    reservation['extra'] = json.loads(reservation['extra'] or '{}')
    reservation['extra'].setdefault('deliveryFee', 0)
    reservation['extra'].setdefault('addOns', [])
    return reservation


def serialize_reservation(reservation: dict) -> dict:
    """
    Build the public wire shape of a reservation.

    Args:
        reservation: Reservation dict as returned by get_reservation_by_id

    Returns:
        dict with camelCase fields (id, workId, userId, customerName, ...)
    """
    return {
        'id': reservation['id'],
        'workId': reservation.get('work_id'),
        'userId': reservation.get('user_id'),
        'customerName': reservation.get('customer_name'),
        'customerEmail': reservation.get('customer_email'),
        'customerPhone': reservation.get('customer_phone'),
        'notes': reservation.get('notes'),
        'totalPrice': reservation['total_price'],
        'items': reservation['items'],
        'optionalItems': reservation['optional_items'],
        'reservationDate': reservation.get('reservation_date'),
        'postcode': reservation.get('postcode'),
        'extra': {
            'deliveryFee': reservation['extra']['deliveryFee'],
            'addOns': reservation['extra']['addOns'],
        },
        'status': reservation['status'],
    }


# =============================================================================
# CREATE
# =============================================================================

def create_reservation(
    items: list,
    total_price: float,
    work_id: int = None,
    optional_items: list = None,
    user_id: int = None,
    customer_name: str = None,
    customer_email: str = None,
    customer_phone: str = None,
    notes: str = None,
    reservation_date: str = None,
    postcode: str = None,
    extra: dict = None,
    idempotency_key: str = None
) -> dict:
    """
    Create a reservation in PENDING status.

    When an idempotency key is given and a reservation with the same key
    already exists, that reservation is returned instead of a new one.

    Args:
        items: Core line items [{key, quantity, priceAtBooking}]
        total_price: Total computed by the caller
        work_id: Package (work) the reservation is based on
        optional_items: Optional line items
        user_id: Owning user
        customer_name: Contact name
        customer_email: Contact email
        customer_phone: Contact phone
        notes: Free-text notes (e.g. custom message)
        reservation_date: Event date (YYYY-MM-DD)
        postcode: Delivery postcode
        extra: {deliveryFee, addOns}
        idempotency_key: Token identifying the submitting wizard session

    Returns:
        dict: The stored reservation

    Raises:
        ValueError: If a line item is invalid
        sqlite3.Error: On database failure
    """
    items = _normalize_line_items(items)
    optional_items = _normalize_line_items(optional_items)
    extra = _normalize_extra(extra)

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        if idempotency_key:
            cursor.execute('SELECT id FROM reservations WHERE idempotency_key = ?',
                           (idempotency_key,))
            existing = cursor.fetchone()
            if existing:
                db.rollback()
                logger.info(f'[Reservation] Duplicate submission {idempotency_key}, '
                            f'returning reservation {existing["id"]}')
                return get_reservation_by_id(existing['id'])

        cursor.execute('''
            INSERT INTO reservations (
                work_id, user_id, customer_name, customer_email, customer_phone,
                notes, total_price, items, optional_items,
                reservation_date, postcode, extra, status, idempotency_key
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', (
            work_id, user_id, customer_name, customer_email, customer_phone,
            notes, total_price, json.dumps(items), json.dumps(optional_items),
            reservation_date, postcode, json.dumps(extra), STATUS_PENDING, idempotency_key
        ))

        reservation_id = cursor.lastrowid
        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f'[Reservation] Created reservation {reservation_id} for {reservation_date}')
    return get_reservation_by_id(reservation_id)


# =============================================================================
# READ
# =============================================================================

def get_reservation_by_id(reservation_id: int) -> dict:
    """
    Get reservation by ID.

    Args:
        reservation_id: Reservation ID

    Returns:
        dict: Reservation with decoded items/extra, or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM reservations WHERE id = ?', (reservation_id,))
    row = cursor.fetchone()
    return _row_to_reservation(row) if row else None


def get_reservation_by_idempotency_key(idempotency_key: str) -> dict:
    """Get the reservation created by a given wizard session, if any."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM reservations WHERE idempotency_key = ?', (idempotency_key,))
    row = cursor.fetchone()
    return _row_to_reservation(row) if row else None


def list_reservations_by_date_range(
    start_date: str,
    end_date: str,
    include_cancelled: bool = True
) -> list:
    """
    List reservations whose date falls in [start_date, end_date).

    Args:
        start_date: Inclusive start (YYYY-MM-DD)
        end_date: Exclusive end (YYYY-MM-DD)
        include_cancelled: Include CANCELLED reservations

    Returns:
        list of reservation dicts ordered by date then id
    """
    db = get_db()
    cursor = db.cursor()

    query = '''
        SELECT * FROM reservations
        WHERE substr(reservation_date, 1, 10) >= ?
          AND substr(reservation_date, 1, 10) < ?
    '''
    params = [start_date, end_date]

    if not include_cancelled:
        query += ' AND status != ?'
        params.append(STATUS_CANCELLED)

    query += ' ORDER BY reservation_date ASC, id ASC'

    cursor.execute(query, params)
    return [_row_to_reservation(row) for row in cursor.fetchall()]


def get_reservations_by_user(user_id: int) -> list:
    """
    Get all reservations owned by a user, newest first.

    Args:
        user_id: User ID

    Returns:
        list of reservation dicts
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT * FROM reservations
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
    ''', (user_id,))
    return [_row_to_reservation(row) for row in cursor.fetchall()]


# =============================================================================
# UPDATE
# =============================================================================

def update_reservation(reservation_id: int, **kwargs) -> dict:
    """
    Update reservation fields.

    Args:
        reservation_id: Reservation ID
        **kwargs: Fields to update (items, optional_items, reservation_date,
                  postcode, customer_name, customer_email, customer_phone,
                  notes, extra, total_price)

    Returns:
        dict: Updated reservation, or None if not found

    Raises:
        ValueError: If the reservation is cancelled or a line item is invalid
        sqlite3.Error: On database failure
    """
    allowed_fields = [
        'reservation_date', 'postcode', 'customer_name', 'customer_email',
        'customer_phone', 'notes', 'total_price'
    ]
    json_fields = {
        'items': _normalize_line_items,
        'optional_items': _normalize_line_items,
        'extra': _normalize_extra,
    }

    updates = []
    values = []

    for field in allowed_fields:
        if field in kwargs:
            updates.append(f'{field} = ?')
            values.append(kwargs[field])

    for field, normalize in json_fields.items():
        if field in kwargs:
            updates.append(f'{field} = ?')
            values.append(json.dumps(normalize(kwargs[field])))

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT status FROM reservations WHERE id = ?', (reservation_id,))
        row = cursor.fetchone()
        if not row:
            db.rollback()
            return None

        if is_terminal_status(row['status']):
            raise ValueError(f'Reservation {reservation_id} is {row["status"]} and cannot be changed')

        if updates:
            updates.append('updated_at = CURRENT_TIMESTAMP')
            cursor.execute(
                f'UPDATE reservations SET {", ".join(updates)} WHERE id = ?',
                values + [reservation_id]
            )

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f'[Reservation] Updated reservation {reservation_id}')
    return get_reservation_by_id(reservation_id)
