"""
Admin routes for reservation management.
Staff list reservations by date, move them through their statuses and
manage the works (packages) shown in the gallery.
"""

from datetime import date, timedelta

from flask import request, Blueprint
from flask_login import login_required

from models.reservation import (
    get_reservation_by_id, list_reservations_by_date_range,
    serialize_reservation, change_reservation_status, RESERVATION_STATUSES
)
from models.work import create_work, update_work, delete_work, serialize_work
from utils.api_response import api_success, api_error
from utils.datetime_helpers import get_today, add_months
from utils.decorators import role_required
from utils.messages import MESSAGES
from utils.validators import validate_date_format

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/reservations')
@login_required
@role_required('admin')
def reservations():
    """
    List reservations in a date range.

    Query params:
        start: First date, inclusive (default: today)
        end: Last date, inclusive (default: one month after start)
        include_cancelled: '0' to hide cancelled reservations
    """
    start = request.args.get('start') or get_today().isoformat()
    if not validate_date_format(start):
        return api_error(MESSAGES['invalid_date'], status=400, code='invalid_date')

    end = request.args.get('end')
    if end and not validate_date_format(end):
        return api_error(MESSAGES['invalid_date'], status=400, code='invalid_date')

    start_date = date.fromisoformat(start)
    end_date = date.fromisoformat(end) if end else add_months(start_date, 1)
    include_cancelled = request.args.get('include_cancelled', '1') != '0'

    # The store range is half-open
    rows = list_reservations_by_date_range(
        start_date.isoformat(),
        (end_date + timedelta(days=1)).isoformat(),
        include_cancelled=include_cancelled
    )

    return api_success(data={
        'start': start_date.isoformat(),
        'end': end_date.isoformat(),
        'reservations': [serialize_reservation(r) for r in rows],
    })


@admin_bp.route('/reservations/<int:reservation_id>')
@login_required
@role_required('admin')
def reservation_detail(reservation_id):
    """Single reservation."""
    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        return api_error(MESSAGES['reservation_not_found'], status=404, code='reservation_not_found')
    return api_success(data={'reservation': serialize_reservation(reservation)})


@admin_bp.route('/reservations/<int:reservation_id>/status', methods=['POST'])
@login_required
@role_required('admin')
def reservation_status(reservation_id):
    """
    Change a reservation's status.

    Request JSON:
    {"status": "CONFIRMED"}
    """
    data = request.get_json(silent=True) or {}
    new_status = data.get('status')

    if new_status not in RESERVATION_STATUSES:
        return api_error(MESSAGES['invalid_status'], status=400, code='invalid_status')

    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        return api_error(MESSAGES['reservation_not_found'], status=404, code='reservation_not_found')

    try:
        change_reservation_status(reservation_id, new_status)
    except ValueError:
        return api_error(
            MESSAGES['invalid_transition'].format(current=reservation['status'], new=new_status),
            status=409,
            code='invalid_transition'
        )

    reservation = get_reservation_by_id(reservation_id)
    return api_success(
        data={'reservation': serialize_reservation(reservation)},
        message=MESSAGES['status_updated']
    )


# =============================================================================
# WORKS
# =============================================================================

def _work_fields(data: dict) -> dict:
    return {
        'title': data.get('title'),
        'image_url': data.get('imageUrl'),
        'notes': data.get('notes'),
        'categories': data.get('categories') or [],
        'items': data.get('items') or [],
        'optional_items': data.get('optionalItems') or [],
    }


@admin_bp.route('/works', methods=['POST'])
@login_required
@role_required('admin')
def work_create():
    """
    Create a work.

    Request JSON:
    {
        "title": "Pastel Birthday",
        "imageUrl": "/static/works/pastel.jpg",
        "notes": "...",
        "categories": ["Backdrop", "Theme"],
        "items": [{"key": "roundArch", "quantity": 1}],
        "optionalItems": [{"key": "neonSign", "quantity": 1}]
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        work = create_work(**_work_fields(data))
    except ValueError as e:
        return api_error(MESSAGES['invalid_work'].format(error=e), status=422, code='invalid_work')

    return api_success(
        data={'work': serialize_work(work)},
        message=MESSAGES['work_created'],
        status=201
    )


@admin_bp.route('/works/<int:work_id>', methods=['PUT'])
@login_required
@role_required('admin')
def work_update(work_id):
    """Replace a work (same body as create)."""
    data = request.get_json(silent=True) or {}
    try:
        work = update_work(work_id, **_work_fields(data))
    except ValueError as e:
        return api_error(MESSAGES['invalid_work'].format(error=e), status=422, code='invalid_work')

    if not work:
        return api_error(MESSAGES['work_not_found'], status=404, code='work_not_found')
    return api_success(data={'work': serialize_work(work)}, message=MESSAGES['work_updated'])


@admin_bp.route('/works/<int:work_id>', methods=['DELETE'])
@login_required
@role_required('admin')
def work_delete(work_id):
    if not delete_work(work_id):
        return api_error(MESSAGES['work_not_found'], status=404, code='work_not_found')
    return api_success(message=MESSAGES['work_deleted'])
