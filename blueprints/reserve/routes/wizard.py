"""
Reservation wizard step endpoints.
The wizard state is kept in the session between requests.
"""

from flask import request, session, current_app, redirect, url_for
from flask_login import login_required, current_user

from blueprints.reserve.services.errors import OwnershipMismatch
from blueprints.reserve.services.submission_service import submit_reservation
from blueprints.reserve.services.wizard_service import ReservationWizard
from blueprints.reserve.services.wizard_state import WizardState, SelectionItem
from models.catalog import get_item_by_key
from models.work import get_work_by_id
from models.reservation import (
    get_reservation_by_id, get_reservations_by_user, serialize_reservation
)
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES
from utils.session_store import WizardSessionStore


# HTTP status per submission error code
SUBMISSION_ERROR_STATUS = {
    'authentication_required': 401,
    'reservation_not_found': 404,
    'date_no_longer_available': 409,
    'reservation_closed': 409,
    'date_required': 422,
    'delivery_fee_required': 422,
    'validation_error': 422,
    'invalid_line_item': 422,
}


def build_wizard(state: WizardState) -> ReservationWizard:
    return ReservationWizard(state)


def state_payload(wizard: ReservationWizard) -> dict:
    """Wizard state as returned to the client."""
    data = wizard.state.to_dict()
    data.pop('idempotency_key', None)
    data['running_total'] = wizard.running_total()
    return data


def _current_user_id():
    return current_user.id if current_user.is_authenticated else None


def register_routes(bp):
    """Register wizard step routes on the blueprint."""

    @bp.route('/start')
    def start():
        """
        Start a wizard.

        Query params:
            id: Reservation to continue (optional, must belong to the user)
            work_id: Package to start from (optional); its items are preselected
        """
        store = WizardSessionStore(session)
        reservation_id = request.args.get('id', type=int)

        if reservation_id is not None:
            wizard = build_wizard(WizardState.new())
            try:
                wizard.enter(reservation_id, _current_user_id())
            except OwnershipMismatch:
                store.clear()
                return redirect(url_for('reserve.start'))
            store.save(wizard.state)
            return api_success(data=state_payload(wizard))

        custom_work_id = current_app.config.get('CUSTOM_WORK_ID', 0)
        work_id = request.args.get('work_id', type=int)
        if work_id is None:
            work_id = custom_work_id

        wizard = build_wizard(WizardState.new(work_id=work_id))
        if work_id != custom_work_id:
            work = get_work_by_id(work_id)
            if not work:
                return api_error(MESSAGES['work_not_found'], status=404, code='work_not_found')
            wizard.apply_work(work, current_app.config.get('ADD_ON_CATEGORY_NAME'))

        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/state')
    def get_state():
        """Current wizard state (starts a fresh wizard if none is running)."""
        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start(current_app.config.get('CUSTOM_WORK_ID', 0)))
        return api_success(data=state_payload(wizard))

    @bp.route('/step1/select', methods=['POST'])
    def select_item():
        """
        Toggle an item in a step 1 slot.

        Request JSON:
        {"slot": "backdrop", "key": "roundArch"}
        """
        data = request.get_json(silent=True) or {}
        slot_name = data.get('slot')
        key = data.get('key')
        if not slot_name or not key:
            return api_error(MESSAGES['field_required'], status=400, code='validation_error')

        row = get_item_by_key(key)
        if not row:
            return api_error(MESSAGES['unknown_item'].format(key=key), status=404,
                             code='unknown_item')

        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        ok, errors = wizard.select_item(slot_name, SelectionItem.from_catalog_row(row))
        if not ok:
            return api_error(next(iter(errors.values())), status=422,
                             code='validation_error', errors=errors)

        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/step1', methods=['POST'])
    def submit_step1():
        """
        Complete step 1.

        Request JSON:
        {
            "selections": {"backdrop": "roundArch", "decorations": ["neonSign"],
                           "theme": "pastel"},   // optional
            "message": "Happy 30th Anna"
        }
        """
        data = request.get_json(silent=True) or {}
        selections = data.get('selections')
        if selections is not None and not isinstance(selections, dict):
            return api_error(MESSAGES['invalid_value'], status=400, code='validation_error')

        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        ok, errors = wizard.submit_step1(selections, data.get('message'))
        if not ok:
            return api_error(next(iter(errors.values())), status=422,
                             code='validation_error', errors=errors)

        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/step2', methods=['POST'])
    def submit_step2():
        """
        Complete step 2.

        Request JSON:
        {
            "date": "2026-11-20",
            "postcode": "2000",
            "customer_name": "...", "customer_email": "...", "customer_phone": "..."
        }

        Contact fields default to the signed-in user's details.
        """
        data = dict(request.get_json(silent=True) or {})
        if current_user.is_authenticated:
            data.setdefault('customer_name', current_user.full_name or current_user.username)
            data.setdefault('customer_email', current_user.email)
            data.setdefault('customer_phone', current_user.phone)

        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        ok, errors = wizard.submit_step2(data)
        if not ok:
            return api_error(next(iter(errors.values())), status=422,
                             code='validation_error', errors=errors)

        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/step3', methods=['POST'])
    def submit_step3():
        """
        Store add-ons and move to the review step.

        Request JSON:
        {"add_ons": ["ledUplights", "cakeStand"]}
        """
        data = request.get_json(silent=True) or {}
        add_ons = data.get('add_ons') or []
        if not isinstance(add_ons, list):
            return api_error(MESSAGES['invalid_value'], status=400, code='validation_error')

        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        wizard.submit_step3(add_ons, current_app.config.get('ADD_ON_CATEGORY_NAME'))
        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/summary')
    def summary():
        """Review data with the price breakdown."""
        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        return api_success(data=wizard.summary())

    @bp.route('/confirm', methods=['POST'])
    @login_required
    def confirm():
        """
        Submit the reservation.

        On success the wizard is finished and removed from the session.
        On failure the wizard is kept unchanged so the customer can retry.
        """
        store = WizardSessionStore(session)
        state = store.load()
        if state is None:
            return api_error(MESSAGES['invalid_step'], status=400, code='invalid_step')

        wizard = build_wizard(state)
        user_id = current_user.id
        result = wizard.confirm(lambda s: submit_reservation(s, user_id))

        if not result.success:
            store.save(wizard.state)
            status = SUBMISSION_ERROR_STATUS.get(result.error_code, 500)
            return api_error(result.message, status=status, code=result.error_code)

        store.clear()
        reservation = get_reservation_by_id(result.reservation_id)
        return api_success(
            data={
                'current_step': wizard.state.current_step,
                'created': result.created,
                'reservation': serialize_reservation(reservation),
            },
            message=result.message,
            status=201 if result.created else 200
        )

    @bp.route('/jump', methods=['POST'])
    def jump():
        """
        Go to another step.

        Request JSON:
        {"step": 2}
        """
        data = request.get_json(silent=True) or {}
        store = WizardSessionStore(session)
        wizard = build_wizard(store.load_or_start())
        ok, errors = wizard.jump(data.get('step'))
        if not ok:
            return api_error(errors['step'], status=400, code='invalid_step')

        store.save(wizard.state)
        return api_success(data=state_payload(wizard))

    @bp.route('/reset', methods=['POST'])
    def reset():
        """Discard the wizard."""
        WizardSessionStore(session).clear()
        return api_success()

    @bp.route('/mine')
    @login_required
    def my_reservations():
        """Reservations of the signed-in user."""
        reservations = get_reservations_by_user(current_user.id)
        return api_success(data={
            'reservations': [serialize_reservation(r) for r in reservations]
        })
