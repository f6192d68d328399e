"""
Lookup endpoints used while filling in the wizard steps.
"""

import sqlite3

from flask import request, current_app

from blueprints.reserve.services.delivery_service import compute_delivery_fee, DeliveryQuote
from blueprints.reserve.services.wizard_service import ReservationWizard
from models.catalog import get_wizard_slots, get_items_by_category, get_add_on_items
from models.postcode import PostcodeDirectory
from models.reservation import get_availability, classify_availability
from utils.api_response import api_success, api_error
from utils.datetime_helpers import get_today, add_months
from utils.messages import MESSAGES


def register_routes(bp):
    """Register lookup routes on the blueprint."""

    @bp.route('/slots')
    def slots():
        """Step 1 slots with the items that can be chosen in each."""
        result = []
        for slot in get_wizard_slots():
            result.append({
                'slot_name': slot['slot_name'],
                'label': slot['label'],
                'category': slot['category_name'],
                'selection_mode': slot['selection_mode'],
                'is_required': bool(slot['is_required']),
                'is_optional_item': bool(slot['is_optional_item']),
                'items': get_items_by_category(slot['category_id']),
            })
        return api_success(data={'slots': result})

    @bp.route('/delivery-fee')
    def delivery_fee():
        """
        Delivery fee for a postcode.

        Query params:
            postcode: Postcode as typed (no lookup until it has 4 characters)

        Response JSON:
        {
            "success": true,
            "data": {"status": "ok", "postcode": "2000", "fee": 50.0,
                     "locality": "Sydney", "distance_km": 0.0}
        }
        """
        quote = compute_delivery_fee(request.args.get('postcode', ''), PostcodeDirectory())

        if quote.ok or quote.status == DeliveryQuote.NOT_READY:
            return api_success(data=quote.to_dict())

        return api_error(
            ReservationWizard.quote_error(quote),
            status=422,
            code=quote.error_code,
            data=quote.to_dict()
        )

    @bp.route('/availability')
    def availability():
        """
        Reservations per day for the date picker.

        Response JSON:
        {
            "success": true,
            "data": {
                "start": "2026-10-18", "end": "2027-01-18",
                "counts": {"2026-10-24": 4},
                "tiers": {"2026-10-24": "busy"}
            }
        }
        """
        today = get_today()
        try:
            counts = get_availability(today)
        except sqlite3.Error as e:
            current_app.logger.error(f'Availability query failed: {e}')
            return api_error(MESSAGES['availability_error'], status=500,
                             code='availability_error')

        months = current_app.config.get('AVAILABILITY_WINDOW_MONTHS', 3)
        return api_success(data={
            'start': today.isoformat(),
            'end': add_months(today, months).isoformat(),
            'counts': counts,
            'tiers': {day: classify_availability(count) for day, count in counts.items()},
        })

    @bp.route('/add-ons')
    def add_ons():
        """Items offered on the add-ons step."""
        items = get_add_on_items(current_app.config.get('ADD_ON_CATEGORY_NAME', 'Add-ons'))
        return api_success(data={'items': items})
