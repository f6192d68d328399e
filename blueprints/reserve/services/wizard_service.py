"""
Wizard Service - Step transitions for the reservation wizard.

Steps:
    1. Package items (backdrop, decorations, theme, message)
    2. Event date, postcode (delivery fee) and contact details
    3. Add-ons
    4. Review with the running total
    5. Confirmation

A wizard continuing an existing reservation skips step 1: its package items
come from the stored reservation and are shown read-only.

Transition methods return (ok, errors) where errors maps a field name to a
user-facing message. The state is left unchanged when ok is False.
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from models.catalog import get_wizard_slots, get_items_by_keys
from models.postcode import PostcodeDirectory
from models.reservation import (
    get_reservation_by_id, is_date_available, is_terminal_status
)
from blueprints.reserve.services.delivery_service import compute_delivery_fee, DeliveryQuote
from blueprints.reserve.services.errors import OwnershipMismatch
from blueprints.reserve.services.pricing_service import compute_total, build_price_breakdown
from blueprints.reserve.services.wizard_state import (
    WizardState, SelectionItem, ExistingReservation, Step2Data,
    empty_selection, FIRST_STEP, LAST_STEP
)
from utils.datetime_helpers import get_today, normalize_reservation_date
from utils.helpers import format_currency
from utils.messages import MESSAGES
from utils.validators import validate_email, validate_phone, sanitize_input

logger = logging.getLogger(__name__)

Errors = Dict[str, str]

MESSAGE_MAX_LENGTH = 500


# =============================================================================
# LINE ITEMS
# =============================================================================

def split_line_items(state: WizardState, slots: List[Dict]) -> Tuple[list, list, list]:
    """
    Flatten the wizard selections into priced line items.

    Step 1 items go to core or optional items according to their slot's
    is_optional_item flag. A wizard continuing an existing reservation uses
    the stored items unchanged.

    Returns:
        (core_items, optional_items, add_ons) as lists of line item dicts
    """
    add_ons = [item.to_line_item().to_dict() for item in state.step3.add_ons]

    if state.existing_reservation:
        return (
            list(state.existing_reservation.items),
            list(state.existing_reservation.optional_items),
            add_ons,
        )

    optional_slots = {s['slot_name'] for s in slots if s.get('is_optional_item')}
    core, optional = [], []

    for slot_name, selection in state.step1.selections.items():
        target = optional if slot_name in optional_slots else core
        for item in selection.items():
            target.append(item.to_line_item().to_dict())

    return core, optional, add_ons


# =============================================================================
# WIZARD
# =============================================================================

class ReservationWizard:
    """
    Drives a WizardState through the five steps.

    Args:
        state: State to operate on (mutated in place)
        slots: Step 1 slot configuration (default: from the catalog)
        item_lookup: keys -> {key: catalog row} (default: catalog query)
        directory: Postcode directory for delivery fees
        date_available: date -> bool check for full days
    """

    def __init__(
        self,
        state: WizardState,
        slots: Optional[List[Dict]] = None,
        item_lookup: Optional[Callable] = None,
        directory=None,
        date_available: Optional[Callable] = None
    ):
        self.state = state
        self.slots = slots if slots is not None else get_wizard_slots()
        self.item_lookup = item_lookup or get_items_by_keys
        self.directory = directory or PostcodeDirectory()
        self.date_available = date_available or is_date_available

    @property
    def slots_by_name(self) -> Dict[str, Dict]:
        return {slot['slot_name']: slot for slot in self.slots}

    # -------------------------------------------------------------------------
    # Works
    # -------------------------------------------------------------------------

    def apply_work(self, work: Dict, add_on_category: Optional[str] = None) -> List[str]:
        """
        Preselect the items of a work.

        Each item goes to the step 1 slot of its category; items of the
        add-on category go to step 3. Quantities are not carried over.

        Returns:
            Keys of the work's items that fit no slot
        """
        slot_for_category = {slot['category_name']: slot for slot in self.slots}
        selections = self.state.step1.selections
        skipped = []

        for line in work['items'] + work['optional_items']:
            item = SelectionItem(
                id=line['item_id'],
                key=line['key'],
                title=line['name'],
                category=line.get('category_name'),
                price=line['price'],
                image_url=line.get('image_url'),
            )
            slot = slot_for_category.get(item.category)

            if slot:
                current = selections.get(slot['slot_name']) or empty_selection(slot['selection_mode'])
                if not any(i.key == item.key for i in current.items()):
                    selections[slot['slot_name']] = current.toggle(item)
            elif add_on_category and item.category == add_on_category:
                if not any(a.key == item.key for a in self.state.step3.add_ons):
                    self.state.step3.add_ons.append(item)
            else:
                skipped.append(item.key)

        if skipped:
            logger.warning(f'[Wizard] Work {work["id"]} items without a slot: {skipped}')
        self.state.work_id = work['id']
        return skipped

    # -------------------------------------------------------------------------
    # Step 1
    # -------------------------------------------------------------------------

    def _check_item_for_slot(self, item: SelectionItem, slot: Dict) -> Optional[str]:
        if item.category != slot['category_name']:
            return MESSAGES['item_not_in_slot'].format(key=item.key, label=slot['label'])
        return None

    def select_item(self, slot_name: str, item: SelectionItem) -> Tuple[bool, Errors]:
        """
        Toggle an item in a step 1 slot.

        Single slots hold one item (choosing the selected item again clears
        the slot); multi slots add or remove the item by key.
        """
        if self.state.is_existing:
            return False, {'step1': MESSAGES['step1_locked']}

        slot = self.slots_by_name.get(slot_name)
        if not slot:
            return False, {slot_name: MESSAGES['unknown_slot'].format(slot=slot_name)}

        error = self._check_item_for_slot(item, slot)
        if error:
            return False, {slot_name: error}

        selections = self.state.step1.selections
        current = selections.get(slot_name) or empty_selection(slot['selection_mode'])
        selections[slot_name] = current.toggle(item)
        return True, {}

    def _resolve_selections(self, raw: Dict) -> Tuple[Dict, Errors]:
        """Turn {slot: key | [keys] | None} into slot selections."""
        errors = {}
        slots = self.slots_by_name

        for slot_name in raw:
            if slot_name not in slots:
                errors[slot_name] = MESSAGES['unknown_slot'].format(slot=slot_name)

        keys = []
        for slot_name, value in raw.items():
            if slot_name in slots and value:
                keys.extend(value if isinstance(value, list) else [value])
        catalog = self.item_lookup(keys) if keys else {}

        resolved = {}
        for slot_name, slot in slots.items():
            selection = empty_selection(slot['selection_mode'])
            value = raw.get(slot_name)
            slot_keys = value if isinstance(value, list) else ([value] if value else [])

            if slot['selection_mode'] == 'single' and len(slot_keys) > 1:
                errors[slot_name] = MESSAGES['invalid_value']
                continue

            for key in slot_keys:
                row = catalog.get(key)
                if not row:
                    errors[slot_name] = MESSAGES['unknown_item'].format(key=key)
                    break
                item = SelectionItem.from_catalog_row(row)
                error = self._check_item_for_slot(item, slot)
                if error:
                    errors[slot_name] = error
                    break
                if not any(i.key == key for i in selection.items()):
                    selection = selection.toggle(item)

            resolved[slot_name] = selection

        return resolved, errors

    def submit_step1(self, selections: Optional[Dict] = None,
                     message: Optional[str] = None) -> Tuple[bool, Errors]:
        """
        Complete step 1 and move to step 2.

        Args:
            selections: {slot: key | [keys] | None} replacing the current
                        picks, or None to keep the picks made with select_item
            message: Custom message for the decoration

        Returns:
            (ok, errors)
        """
        if self.state.is_existing:
            return False, {'step1': MESSAGES['step1_locked']}

        errors = {}
        if selections is not None:
            resolved, errors = self._resolve_selections(selections)
        else:
            resolved = dict(self.state.step1.selections)

        for slot in self.slots:
            if not slot.get('is_required'):
                continue
            selection = resolved.get(slot['slot_name'])
            if (selection is None or selection.is_empty()) and slot['slot_name'] not in errors:
                errors[slot['slot_name']] = MESSAGES['slot_required'].format(label=slot['label'])

        if errors:
            return False, errors

        self.state.step1.selections = resolved
        if message is not None:
            self.state.step1.message = sanitize_input(message, MESSAGE_MAX_LENGTH)
        self.state.current_step = 2
        return True, {}

    # -------------------------------------------------------------------------
    # Step 2
    # -------------------------------------------------------------------------

    def quote_delivery(self, postcode: str) -> DeliveryQuote:
        return compute_delivery_fee(postcode, self.directory)

    @staticmethod
    def quote_error(quote: DeliveryQuote) -> Optional[str]:
        """User-facing message for an unsuccessful quote."""
        if quote.status == DeliveryQuote.NOT_READY:
            return MESSAGES['postcode_not_ready']
        if quote.status == DeliveryQuote.INVALID:
            return MESSAGES['postcode_invalid']
        if quote.status == DeliveryQuote.NOT_FOUND:
            return MESSAGES['postcode_not_found']
        if quote.status == DeliveryQuote.OUT_OF_AREA:
            return MESSAGES['out_of_service_area'].format(distance_km=quote.distance_km)
        return None

    def submit_step2(self, payload: Dict, today: Optional[date] = None) -> Tuple[bool, Errors]:
        """
        Complete step 2 and move to step 3.

        Args:
            payload: {date, postcode, customer_name, customer_email, customer_phone}
            today: Reference date (default: today in the configured timezone)

        Returns:
            (ok, errors)
        """
        errors = {}
        today = today or get_today()

        reservation_date = None
        raw_date = payload.get('date')
        if not raw_date:
            errors['date'] = MESSAGES['date_required']
        else:
            try:
                reservation_date = normalize_reservation_date(raw_date)
            except (ValueError, TypeError):
                errors['date'] = MESSAGES['invalid_date']
            else:
                if reservation_date < today.isoformat():
                    errors['date'] = MESSAGES['date_in_past']
                elif not self.date_available(reservation_date):
                    errors['date'] = MESSAGES['date_full']

        quote = self.quote_delivery(payload.get('postcode'))
        if not quote.ok:
            errors['postcode'] = self.quote_error(quote)

        name = (payload.get('customer_name') or '').strip()
        email = (payload.get('customer_email') or '').strip()
        phone = (payload.get('customer_phone') or '').strip()

        if not name:
            errors['customer_name'] = MESSAGES['field_required']
        if not email:
            errors['customer_email'] = MESSAGES['field_required']
        elif not validate_email(email):
            errors['customer_email'] = MESSAGES['invalid_email']
        if not phone:
            errors['customer_phone'] = MESSAGES['field_required']
        elif not validate_phone(phone):
            errors['customer_phone'] = MESSAGES['invalid_phone']

        if errors:
            return False, errors

        self.state.step2 = Step2Data(
            date=reservation_date,
            postcode=quote.postcode,
            delivery_fee=quote.fee,
            locality=quote.locality,
            distance_km=quote.distance_km,
            customer_name=name,
            customer_email=email,
            customer_phone=phone,
        )
        self.state.current_step = 3
        return True, {}

    # -------------------------------------------------------------------------
    # Step 3
    # -------------------------------------------------------------------------

    def submit_step3(self, add_on_keys: Optional[List[str]] = None,
                     add_on_category: Optional[str] = None) -> Tuple[bool, Errors]:
        """
        Store the chosen add-ons and move to step 4.

        Add-ons are optional; keys that are not catalog items of the add-on
        category are ignored. Add-ons already booked on an existing
        reservation keep their booked price.
        """
        keys = list(dict.fromkeys(add_on_keys or []))
        catalog = self.item_lookup(keys) if keys else {}
        booked = {}
        if self.state.existing_reservation:
            booked = {line['key']: line for line in self.state.existing_reservation.add_ons}

        add_ons = []
        for key in keys:
            row = catalog.get(key)
            if key in booked:
                add_ons.append(SelectionItem.from_booked_line(booked[key], row))
                continue
            if not row or (add_on_category and row.get('category_name') != add_on_category):
                logger.warning(f'[Wizard] Ignoring unknown add-on {key}')
                continue
            add_ons.append(SelectionItem.from_catalog_row(row))

        self.state.step3.add_ons = add_ons
        self.state.current_step = 4
        return True, {}

    # -------------------------------------------------------------------------
    # Step 4
    # -------------------------------------------------------------------------

    def missing_required_slots(self) -> List[Dict]:
        """Required step 1 slots left empty (steps can be skipped with jump)."""
        if self.state.is_existing:
            return []
        missing = []
        for slot in self.slots:
            selection = self.state.step1.selections.get(slot['slot_name'])
            if slot.get('is_required') and (selection is None or selection.is_empty()):
                missing.append(slot)
        return missing

    def line_items(self) -> Tuple[list, list, list]:
        return split_line_items(self.state, self.slots)

    def running_total(self) -> float:
        core, optional, add_ons = self.line_items()
        return compute_total(core, optional, add_ons, self.state.step2.delivery_fee or 0)

    def summary(self) -> Dict:
        """Everything the review step displays."""
        core, optional, add_ons = self.line_items()
        price = build_price_breakdown(core, optional, add_ons, self.state.step2.delivery_fee or 0)
        return {
            'step1': self.state.step1.to_dict(),
            'step2': self.state.step2.to_dict(),
            'add_ons': [item.to_dict() for item in self.state.step3.add_ons],
            'existing_reservation_id': (
                self.state.existing_reservation.id if self.state.existing_reservation else None
            ),
            'price': price,
            'total_display': format_currency(price['total']),
        }

    def confirm(self, submitter: Callable):
        """
        Submit the reservation.

        Args:
            submitter: state -> SubmissionResult (the submission orchestrator)

        Returns:
            SubmissionResult. The wizard moves to step 5 only on success.
        """
        from blueprints.reserve.services.submission_service import SubmissionResult

        missing = self.missing_required_slots()
        if missing:
            return SubmissionResult(
                success=False,
                error_code='validation_error',
                message=MESSAGES['slot_required'].format(label=missing[0]['label'])
            )

        result = submitter(self.state)

        if result.success:
            self.state.submitted_reservation_id = result.reservation_id
            self.state.current_step = LAST_STEP
        return result

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def jump(self, step) -> Tuple[bool, Errors]:
        """
        Move directly to a step (step tracker).

        Steps 1-4 can be visited in any order; the confirmation step is only
        reached through confirm().
        """
        if not isinstance(step, int) or isinstance(step, bool) or not FIRST_STEP <= step <= LAST_STEP:
            return False, {'step': MESSAGES['invalid_step']}
        if step == LAST_STEP and self.state.current_step != LAST_STEP:
            return False, {'step': MESSAGES['invalid_step']}

        self.state.current_step = step
        return True, {}

    def enter(self, reservation_id: int, user_id: int,
              reservation_lookup: Optional[Callable] = None) -> WizardState:
        """
        Start a wizard continuing one of the user's reservations.

        Args:
            reservation_id: Reservation to continue
            user_id: Current user
            reservation_lookup: id -> reservation dict (default: store query)

        Returns:
            The new state, positioned on step 2

        Raises:
            OwnershipMismatch: If the reservation is missing, belongs to
                another user or is cancelled
        """
        lookup = reservation_lookup or get_reservation_by_id
        reservation = lookup(reservation_id)

        if not reservation or user_id is None or reservation.get('user_id') != user_id:
            logger.warning(f'[Wizard] User {user_id} cannot continue reservation {reservation_id}')
            raise OwnershipMismatch(MESSAGES['reservation_not_found'])

        if is_terminal_status(reservation['status']):
            raise OwnershipMismatch(MESSAGES['reservation_closed'], code='reservation_closed')

        extra = reservation.get('extra') or {}
        booked_add_ons = list(extra.get('addOns') or [])

        state = WizardState.new(work_id=reservation.get('work_id') or 0)
        state.existing_reservation = ExistingReservation(
            id=reservation['id'],
            items=reservation['items'],
            optional_items=reservation['optional_items'],
            add_ons=booked_add_ons,
        )
        state.step1.message = reservation.get('notes') or ''
        state.step2 = Step2Data(
            date=reservation.get('reservation_date'),
            postcode=reservation.get('postcode'),
            delivery_fee=extra.get('deliveryFee'),
            customer_name=reservation.get('customer_name'),
            customer_email=reservation.get('customer_email'),
            customer_phone=reservation.get('customer_phone'),
        )

        catalog = self.item_lookup([line['key'] for line in booked_add_ons]) if booked_add_ons else {}
        state.step3.add_ons = [
            SelectionItem.from_booked_line(line, catalog.get(line['key']))
            for line in booked_add_ons
        ]
        state.current_step = 2

        self.state = state
        return state
