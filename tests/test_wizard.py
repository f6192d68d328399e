"""
Tests for the reservation wizard transitions.
These tests run without a database: catalog, postcode directory and
availability are replaced with in-memory versions.
"""

import pytest
from datetime import date

from blueprints.reserve.services.errors import OwnershipMismatch
from blueprints.reserve.services.submission_service import SubmissionResult
from blueprints.reserve.services.wizard_service import ReservationWizard
from blueprints.reserve.services.wizard_state import (
    WizardState, SelectionItem, SingleSelection, MultiSelection
)
from models.postcode import StaticPostcodeDirectory


TODAY = date(2030, 1, 15)

CATALOG = {
    'roundArch': {'id': 1, 'key': 'roundArch', 'name': 'Round Arch', 'base_price': 120,
                  'category_name': 'Backdrop', 'image_url': None},
    'meshWall': {'id': 2, 'key': 'meshWall', 'name': 'Mesh Wall', 'base_price': 150,
                 'category_name': 'Backdrop', 'image_url': None},
    'neonSign': {'id': 7, 'key': 'neonSign', 'name': 'Neon Sign', 'base_price': 60,
                 'category_name': 'Decoration', 'image_url': None},
    'handySign': {'id': 8, 'key': 'handySign', 'name': 'Handy Sign', 'base_price': 70,
                  'category_name': 'Decoration', 'image_url': None},
    'pastel': {'id': 9, 'key': 'pastel', 'name': 'Pastel', 'base_price': 10,
               'category_name': 'Theme', 'image_url': None},
    'ledUplights': {'id': 12, 'key': 'ledUplights', 'name': 'LED Uplights', 'base_price': 80,
                    'category_name': 'Add-ons', 'image_url': None},
}

SLOTS = [
    {'slot_name': 'backdrop', 'label': 'Choose a Backdrop', 'category_name': 'Backdrop',
     'selection_mode': 'single', 'is_required': 1, 'is_optional_item': 0},
    {'slot_name': 'decorations', 'label': 'Choose Decorations', 'category_name': 'Decoration',
     'selection_mode': 'multi', 'is_required': 0, 'is_optional_item': 1},
    {'slot_name': 'theme', 'label': 'Choose a Theme', 'category_name': 'Theme',
     'selection_mode': 'single', 'is_required': 0, 'is_optional_item': 0},
]

DIRECTORY = StaticPostcodeDirectory({
    '2000': {'latitude': -33.8688, 'longitude': 151.2093, 'locality': 'Sydney'},
    '2300': {'latitude': -32.9283, 'longitude': 151.7817, 'locality': 'Newcastle'},
})

STEP2 = {
    'date': '2030-01-20',
    'postcode': '2000',
    'customer_name': 'Demo Customer',
    'customer_email': 'customer@decorrental.local',
    'customer_phone': '0412 345 678',
}


def lookup_items(keys):
    return {key: CATALOG[key] for key in keys if key in CATALOG}


def item(key):
    return SelectionItem.from_catalog_row(CATALOG[key])


def make_wizard(state=None, full_dates=()):
    return ReservationWizard(
        state or WizardState.new(),
        slots=SLOTS,
        item_lookup=lookup_items,
        directory=DIRECTORY,
        date_available=lambda d: d not in full_dates
    )


def wizard_at_step4(**kwargs):
    wizard = make_wizard(**kwargs)
    wizard.submit_step1({'backdrop': 'roundArch', 'theme': 'pastel'}, 'Happy 30th')
    wizard.submit_step2(STEP2, today=TODAY)
    wizard.submit_step3(['ledUplights'], 'Add-ons')
    return wizard


def stored_reservation(**overrides):
    reservation = {
        'id': 7,
        'user_id': 3,
        'work_id': 0,
        'status': 'PENDING',
        'items': [{'key': 'roundArch', 'quantity': 1, 'priceAtBooking': 100}],
        'optional_items': [{'key': 'neonSign', 'quantity': 1, 'priceAtBooking': 55}],
        'reservation_date': '2030-01-20',
        'postcode': '2000',
        'customer_name': 'Demo Customer',
        'customer_email': 'customer@decorrental.local',
        'customer_phone': '0412345678',
        'notes': 'Happy 30th',
    }
    reservation.update(overrides)
    return reservation


class TestSlotSelection:
    """Toggling items in step 1 slots."""

    def test_single_slot_selects_item(self):
        wizard = make_wizard()

        ok, errors = wizard.select_item('backdrop', item('roundArch'))

        assert ok and errors == {}
        assert wizard.state.step1.selections['backdrop'] == SingleSelection(item('roundArch'))

    def test_single_slot_same_item_deselects(self):
        wizard = make_wizard()
        wizard.select_item('backdrop', item('roundArch'))
        wizard.select_item('backdrop', item('roundArch'))

        assert wizard.state.step1.selections['backdrop'].is_empty()

    def test_single_slot_other_item_replaces(self):
        wizard = make_wizard()
        wizard.select_item('backdrop', item('roundArch'))
        wizard.select_item('backdrop', item('meshWall'))

        assert [i.key for i in wizard.state.step1.selections['backdrop'].items()] == ['meshWall']

    def test_multi_slot_toggles_by_key(self):
        wizard = make_wizard()
        wizard.select_item('decorations', item('neonSign'))
        wizard.select_item('decorations', item('handySign'))
        wizard.select_item('decorations', item('neonSign'))

        selection = wizard.state.step1.selections['decorations']
        assert isinstance(selection, MultiSelection)
        assert [i.key for i in selection.items()] == ['handySign']

    def test_item_from_other_category_rejected(self):
        wizard = make_wizard()

        ok, errors = wizard.select_item('backdrop', item('pastel'))

        assert not ok
        assert 'backdrop' in errors
        assert 'backdrop' not in wizard.state.step1.selections

    def test_unknown_slot_rejected(self):
        ok, errors = make_wizard().select_item('balloons', item('roundArch'))

        assert not ok
        assert 'balloons' in errors


def work_line(key, quantity=1):
    row = CATALOG[key]
    return {'item_id': row['id'], 'key': key, 'name': row['name'], 'price': row['base_price'],
            'quantity': quantity, 'category_name': row['category_name'], 'image_url': None}


class TestApplyWork:
    """Starting from a curated package."""

    def test_items_go_to_their_slots(self):
        wizard = make_wizard()
        work = {'id': 4, 'items': [work_line('meshWall'), work_line('pastel')],
                'optional_items': [work_line('neonSign'), work_line('handySign')]}

        skipped = wizard.apply_work(work)

        selections = wizard.state.step1.selections
        assert skipped == []
        assert wizard.state.work_id == 4
        assert selections['backdrop'].item.key == 'meshWall'
        assert selections['theme'].item.key == 'pastel'
        assert [i.key for i in selections['decorations'].items()] == ['neonSign', 'handySign']

    def test_add_on_items_go_to_step3(self):
        wizard = make_wizard()
        work = {'id': 4, 'items': [work_line('roundArch')],
                'optional_items': [work_line('ledUplights')]}

        skipped = wizard.apply_work(work, 'Add-ons')

        assert skipped == []
        assert [a.key for a in wizard.state.step3.add_ons] == ['ledUplights']

    def test_items_without_slot_are_skipped(self):
        wizard = make_wizard()
        work = {'id': 4, 'items': [work_line('roundArch')],
                'optional_items': [work_line('ledUplights')]}

        assert wizard.apply_work(work) == ['ledUplights']
        assert wizard.state.step3.add_ons == []

    def test_step1_accepts_preselected_work(self):
        wizard = make_wizard()
        wizard.apply_work({'id': 4, 'items': [work_line('roundArch')], 'optional_items': []})

        ok, errors = wizard.submit_step1()

        assert ok, errors
        assert wizard.state.current_step == 2


class TestStep1:
    """Completing step 1."""

    def test_requires_backdrop(self):
        wizard = make_wizard()

        ok, errors = wizard.submit_step1({'theme': 'pastel'}, '')

        assert not ok
        assert 'backdrop' in errors
        assert wizard.state.current_step == 1
        assert wizard.state.step1.selections == {}

    def test_advances_with_selections(self):
        wizard = make_wizard()

        ok, errors = wizard.submit_step1(
            {'backdrop': 'roundArch', 'decorations': ['neonSign', 'handySign']},
            '  Happy 30th  '
        )

        assert ok
        assert wizard.state.current_step == 2
        assert wizard.state.step1.message == 'Happy 30th'
        assert [i.key for i in wizard.state.step1.selections['decorations'].items()] == [
            'neonSign', 'handySign'
        ]

    def test_keeps_picks_made_by_select_item(self):
        wizard = make_wizard()
        wizard.select_item('backdrop', item('meshWall'))

        ok, _ = wizard.submit_step1(None, 'Hi')

        assert ok
        assert wizard.state.step1.selections['backdrop'].item.key == 'meshWall'

    def test_unknown_item_key(self):
        ok, errors = make_wizard().submit_step1({'backdrop': 'goldenGate'})

        assert not ok
        assert 'goldenGate' in errors['backdrop']

    def test_single_slot_rejects_several_keys(self):
        ok, errors = make_wizard().submit_step1({'backdrop': ['roundArch', 'meshWall']})

        assert not ok
        assert 'backdrop' in errors


class TestStep2:
    """Date, delivery and contact details."""

    def test_valid_details_advance(self):
        wizard = make_wizard()

        ok, errors = wizard.submit_step2(STEP2, today=TODAY)

        assert ok, errors
        step2 = wizard.state.step2
        assert wizard.state.current_step == 3
        assert step2.date == '2030-01-20'
        assert step2.delivery_fee == 50
        assert step2.locality == 'Sydney'
        assert step2.distance_km == 0

    def test_timestamp_is_truncated_to_date(self):
        wizard = make_wizard()

        ok, _ = wizard.submit_step2(dict(STEP2, date='2030-01-20T23:30:00Z'), today=TODAY)

        assert ok
        assert wizard.state.step2.date == '2030-01-20'

    @pytest.mark.parametrize('field,value', [
        ('date', ''),
        ('date', '20/01/2030'),
        ('date', '2030-01-10'),
        ('postcode', '200'),
        ('postcode', '9999'),
        ('postcode', '2300'),
        ('customer_name', ''),
        ('customer_email', 'not-an-email'),
        ('customer_phone', '12'),
    ])
    def test_invalid_field_keeps_step(self, field, value):
        wizard = make_wizard()
        wizard.state.current_step = 2

        ok, errors = wizard.submit_step2(dict(STEP2, **{field: value}), today=TODAY)

        assert not ok
        assert field in errors
        assert wizard.state.current_step == 2
        assert wizard.state.step2.delivery_fee is None

    def test_full_date_rejected(self):
        wizard = make_wizard(full_dates={'2030-01-20'})

        ok, errors = wizard.submit_step2(STEP2, today=TODAY)

        assert not ok
        assert errors['date'] == 'This date is fully booked'

    def test_out_of_area_message_has_distance(self):
        ok, errors = make_wizard().submit_step2(dict(STEP2, postcode='2300'), today=TODAY)

        assert not ok
        assert 'km is outside our delivery area' in errors['postcode']


class TestStep3And4:
    """Add-ons and the running total."""

    def test_add_ons_optional(self):
        wizard = make_wizard()

        ok, _ = wizard.submit_step3([], 'Add-ons')

        assert ok
        assert wizard.state.current_step == 4
        assert wizard.state.step3.add_ons == []

    def test_unknown_and_non_add_on_keys_ignored(self):
        wizard = make_wizard()

        wizard.submit_step3(['ledUplights', 'nothing', 'roundArch', 'ledUplights'], 'Add-ons')

        assert [a.key for a in wizard.state.step3.add_ons] == ['ledUplights']

    def test_running_total(self):
        wizard = wizard_at_step4()

        assert wizard.state.current_step == 4
        assert wizard.running_total() == 260.0

    def test_summary_splits_sections(self):
        wizard = make_wizard()
        wizard.submit_step1({'backdrop': 'roundArch', 'decorations': ['neonSign']})
        wizard.submit_step2(STEP2, today=TODAY)
        wizard.submit_step3(['ledUplights'], 'Add-ons')

        price = wizard.summary()['price']

        assert price['items_subtotal'] == 120.0
        assert price['optional_items_subtotal'] == 60.0
        assert price['add_ons_subtotal'] == 80.0
        assert price['total'] == 310.0


class TestNavigation:
    """Step tracker jumps."""

    @pytest.mark.parametrize('step', [1, 2, 3, 4])
    def test_jump_to_steps_one_to_four(self, step):
        wizard = make_wizard()

        ok, _ = wizard.jump(step)

        assert ok
        assert wizard.state.current_step == step

    @pytest.mark.parametrize('step', [5, 0, 6, '2', None, True])
    def test_invalid_jumps(self, step):
        wizard = make_wizard()

        ok, errors = wizard.jump(step)

        assert not ok
        assert 'step' in errors
        assert wizard.state.current_step == 1


class TestConfirm:
    """Submitting from the review step."""

    def test_success_moves_to_confirmation(self):
        wizard = wizard_at_step4()

        result = wizard.confirm(lambda state: SubmissionResult(success=True, reservation_id=11))

        assert result.success
        assert wizard.state.current_step == 5
        assert wizard.state.submitted_reservation_id == 11

    def test_failure_keeps_state(self):
        wizard = wizard_at_step4()
        before = wizard.state.to_dict()

        result = wizard.confirm(
            lambda state: SubmissionResult(success=False, error_code='submission_failed')
        )

        assert not result.success
        assert wizard.state.to_dict() == before

    def test_submitter_exception_keeps_review_step(self):
        wizard = wizard_at_step4()

        def broken(state):
            raise RuntimeError('boom')

        with pytest.raises(RuntimeError):
            wizard.confirm(broken)
        assert wizard.state.current_step == 4
        assert wizard.state.submitted_reservation_id is None

    def test_missing_required_slot_after_jump(self):
        wizard = make_wizard()
        wizard.jump(4)
        calls = []

        result = wizard.confirm(lambda state: calls.append(state))

        assert result.error_code == 'validation_error'
        assert calls == []


class TestExistingReservation:
    """Continuing a stored reservation."""

    def test_owned_reservation_starts_at_step2(self):
        wizard = make_wizard()

        state = wizard.enter(7, 3, reservation_lookup=lambda rid: stored_reservation())

        assert state is wizard.state
        assert state.current_step == 2
        assert state.is_existing
        assert state.existing_reservation.id == 7
        assert state.step2.postcode == '2000'
        assert state.step2.delivery_fee is None

    def test_step1_is_read_only(self):
        wizard = make_wizard()
        wizard.enter(7, 3, reservation_lookup=lambda rid: stored_reservation())

        select_ok, _ = wizard.select_item('backdrop', item('meshWall'))
        submit_ok, errors = wizard.submit_step1({'backdrop': 'meshWall'})

        assert not select_ok
        assert not submit_ok
        assert 'step1' in errors
        assert wizard.state.existing_reservation.items[0]['key'] == 'roundArch'

    def test_jump_to_step1_shows_summary(self):
        wizard = make_wizard()
        wizard.enter(7, 3, reservation_lookup=lambda rid: stored_reservation())

        ok, _ = wizard.jump(1)

        assert ok
        assert wizard.state.is_existing

    def test_total_uses_stored_prices(self):
        wizard = make_wizard()
        wizard.enter(7, 3, reservation_lookup=lambda rid: stored_reservation())
        wizard.submit_step2(STEP2, today=TODAY)
        wizard.submit_step3(['ledUplights'], 'Add-ons')

        # 100 + 55 stored, 80 add-on, 50 delivery
        assert wizard.running_total() == 285.0

    def test_booked_add_ons_and_fee_carried_over(self):
        booked = stored_reservation(extra={
            'deliveryFee': 50,
            'addOns': [{'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 70}],
        })
        wizard = make_wizard()

        state = wizard.enter(7, 3, reservation_lookup=lambda rid: booked)

        assert state.step2.delivery_fee == 50
        assert [a.key for a in state.step3.add_ons] == ['ledUplights']
        assert state.step3.add_ons[0].price == 70
        assert state.step3.add_ons[0].title == 'LED Uplights'
        # 100 + 55 stored, 70 booked add-on, 50 delivery
        assert wizard.running_total() == 275.0

    def test_jump_to_review_keeps_booked_add_ons(self):
        booked = stored_reservation(extra={
            'deliveryFee': 50,
            'addOns': [{'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 70}],
        })
        wizard = make_wizard()
        wizard.enter(7, 3, reservation_lookup=lambda rid: booked)
        wizard.submit_step2(STEP2, today=TODAY)

        wizard.jump(4)
        _, _, add_ons = wizard.line_items()

        assert add_ons == [{'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 70}]

    def test_reselected_add_on_keeps_booked_price(self):
        booked = stored_reservation(extra={
            'deliveryFee': 50,
            'addOns': [{'key': 'ledUplights', 'quantity': 1, 'priceAtBooking': 70}],
        })
        wizard = make_wizard()
        wizard.enter(7, 3, reservation_lookup=lambda rid: booked)

        wizard.submit_step3(['ledUplights'], 'Add-ons')

        assert wizard.state.step3.add_ons[0].price == 70

    def test_other_users_reservation(self):
        wizard = make_wizard()

        with pytest.raises(OwnershipMismatch):
            wizard.enter(7, 99, reservation_lookup=lambda rid: stored_reservation())
        assert not wizard.state.is_existing

    def test_missing_reservation(self):
        with pytest.raises(OwnershipMismatch):
            make_wizard().enter(7, 3, reservation_lookup=lambda rid: None)

    def test_signed_out_user(self):
        with pytest.raises(OwnershipMismatch):
            make_wizard().enter(7, None, reservation_lookup=lambda rid: stored_reservation())

    def test_cancelled_reservation(self):
        with pytest.raises(OwnershipMismatch) as exc_info:
            make_wizard().enter(
                7, 3, reservation_lookup=lambda rid: stored_reservation(status='CANCELLED')
            )
        assert exc_info.value.code == 'reservation_closed'


class TestWizardStateSerialization:
    """Session round trip."""

    def test_state_survives_session_round_trip(self):
        wizard = wizard_at_step4()
        wizard.select_item('decorations', item('neonSign'))

        restored = WizardState.from_dict(wizard.state.to_dict())

        assert restored == wizard.state

    def test_new_states_get_distinct_keys(self):
        assert WizardState.new().idempotency_key != WizardState.new().idempotency_key
