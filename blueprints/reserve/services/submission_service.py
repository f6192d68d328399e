"""
Submission Service - Turns a completed wizard into a stored reservation.

Two branches:
- New reservation: step 1 selections become core/optional line items,
  add-ons and the delivery fee go to extra, status PENDING.
- Existing reservation: stored items are kept exactly as booked; date,
  postcode, contact details, add-ons, fee and total are updated.

The wizard state is never modified here; on failure it stays as it was so
the customer can retry.
"""

import logging
import sqlite3
from dataclasses import dataclass, asdict
from typing import Optional, List, Dict

import models.reservation as reservation_model
from models.catalog import get_wizard_slots
from blueprints.reserve.services.errors import (
    InvalidLineItem, PersistenceError, DateNoLongerAvailable, OwnershipMismatch
)
from blueprints.reserve.services.pricing_service import compute_total
from blueprints.reserve.services.wizard_service import split_line_items
from blueprints.reserve.services.wizard_state import WizardState
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    success: bool
    reservation_id: Optional[int] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    created: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


def _failure(code: str, message: str = None) -> SubmissionResult:
    return SubmissionResult(success=False, error_code=code, message=message or MESSAGES.get(code))


def submit_reservation(
    state: WizardState,
    user_id: Optional[int],
    reservation_store=None,
    slots: Optional[List[Dict]] = None,
    date_available=None
) -> SubmissionResult:
    """
    Persist the reservation described by a wizard state.

    Args:
        state: Completed wizard state
        user_id: Authenticated user, None if signed out
        reservation_store: Object exposing create_reservation,
            update_reservation, get_reservation_by_id and
            get_reservation_by_idempotency_key (default: models.reservation)
        slots: Step 1 slot configuration (default: from the catalog)
        date_available: date -> bool re-check (default: store based)

    Returns:
        SubmissionResult
    """
    if user_id is None:
        return _failure('authentication_required')

    store = reservation_store or reservation_model
    date_available = date_available or reservation_model.is_date_available
    step2 = state.step2

    if not step2.date:
        return _failure('date_required')
    if step2.delivery_fee is None:
        return _failure('delivery_fee_required')

    try:
        if state.existing_reservation:
            return _update_existing(state, user_id, store, date_available)

        if slots is None:
            slots = get_wizard_slots(active_only=False)
        return _create_new(state, user_id, store, slots, date_available)

    except InvalidLineItem as e:
        logger.error(f'[Submission] Invalid line item: {e}')
        return _failure(InvalidLineItem.code)

    except ValueError as e:
        logger.error(f'[Submission] Reservation rejected by the store: {e}')
        return _failure(InvalidLineItem.code)

    except DateNoLongerAvailable:
        logger.info(f'[Submission] Date {step2.date} became full before submission')
        return _failure(DateNoLongerAvailable.code)

    except OwnershipMismatch as e:
        return _failure(e.code)

    except (sqlite3.Error, PersistenceError) as e:
        logger.error(f'[Submission] Failed to save reservation: {e}', exc_info=True)
        return _failure(PersistenceError.code)


def _extra(add_ons: list, delivery_fee) -> Dict:
    return {'deliveryFee': delivery_fee, 'addOns': add_ons}


def _create_new(state, user_id, store, slots, date_available) -> SubmissionResult:
    existing = store.get_reservation_by_idempotency_key(state.idempotency_key)
    if existing:
        logger.info(f'[Submission] Wizard {state.idempotency_key} already submitted '
                    f'as reservation {existing["id"]}')
        return SubmissionResult(
            success=True,
            reservation_id=existing['id'],
            message=MESSAGES['reservation_created'],
            created=False
        )

    if not date_available(state.step2.date):
        raise DateNoLongerAvailable()

    core, optional, add_ons = split_line_items(state, slots)
    total = compute_total(core, optional, add_ons, state.step2.delivery_fee)

    reservation = store.create_reservation(
        items=core,
        optional_items=optional,
        total_price=total,
        work_id=state.work_id,
        user_id=user_id,
        customer_name=state.step2.customer_name,
        customer_email=state.step2.customer_email,
        customer_phone=state.step2.customer_phone,
        notes=state.step1.message or None,
        reservation_date=state.step2.date,
        postcode=state.step2.postcode,
        extra=_extra(add_ons, state.step2.delivery_fee),
        idempotency_key=state.idempotency_key
    )
    if not reservation:
        raise PersistenceError('Reservation was not stored')

    logger.info(f'[Submission] Reservation {reservation["id"]} created, total {total}')
    return SubmissionResult(
        success=True,
        reservation_id=reservation['id'],
        message=MESSAGES['reservation_created'],
        created=True
    )


def _update_existing(state, user_id, store, date_available) -> SubmissionResult:
    reservation_id = state.existing_reservation.id
    stored = store.get_reservation_by_id(reservation_id)

    if not stored or stored.get('user_id') != user_id:
        raise OwnershipMismatch(MESSAGES['reservation_not_found'])
    if reservation_model.is_terminal_status(stored['status']):
        return _failure('reservation_closed')

    # Moving to another day takes a new slot; staying on the same day does not
    if stored.get('reservation_date') != state.step2.date and not date_available(state.step2.date):
        raise DateNoLongerAvailable()

    items = stored['items']
    optional_items = stored['optional_items']
    add_ons = [item.to_line_item().to_dict() for item in state.step3.add_ons]
    total = compute_total(items, optional_items, add_ons, state.step2.delivery_fee)

    try:
        updated = store.update_reservation(
            reservation_id,
            items=items,
            optional_items=optional_items,
            reservation_date=state.step2.date,
            postcode=state.step2.postcode,
            customer_name=state.step2.customer_name,
            customer_email=state.step2.customer_email,
            customer_phone=state.step2.customer_phone,
            extra=_extra(add_ons, state.step2.delivery_fee),
            total_price=total
        )
    except ValueError as e:
        logger.warning(f'[Submission] Reservation {reservation_id} rejected update: {e}')
        return _failure('reservation_closed')

    if not updated:
        raise OwnershipMismatch(MESSAGES['reservation_not_found'])

    logger.info(f'[Submission] Reservation {reservation_id} updated, total {total}')
    return SubmissionResult(
        success=True,
        reservation_id=reservation_id,
        message=MESSAGES['reservation_updated'],
        created=False
    )
