"""
Cart routes.
Session cart of catalog items, kept separate from the reservation wizard.
"""

from flask import request, session, Blueprint

from models.catalog import get_item_by_key
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES
from utils.session_store import CartStore

cart_bp = Blueprint('cart', __name__)


def _cart_payload(store: CartStore) -> dict:
    return {'items': store.items(), 'total': store.total()}


@cart_bp.route('/')
def view_cart():
    """Current cart lines and total."""
    return api_success(data=_cart_payload(CartStore(session)))


@cart_bp.route('/add', methods=['POST'])
def add_to_cart():
    """
    Add an item or change its quantity.

    Request JSON:
    {"key": "photoBooth", "quantity": 1}
    """
    data = request.get_json(silent=True) or {}
    key = data.get('key')
    quantity = data.get('quantity', 1)

    if not key:
        return api_error(MESSAGES['field_required'], status=400, code='validation_error')
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity == 0:
        return api_error(MESSAGES['invalid_value'], status=400, code='validation_error')

    item = get_item_by_key(key)
    if not item:
        return api_error(MESSAGES['unknown_item'].format(key=key), status=404, code='unknown_item')

    store = CartStore(session)
    store.add(item, quantity)
    return api_success(data=_cart_payload(store), message=MESSAGES['cart_updated'])


@cart_bp.route('/remove', methods=['POST'])
def remove_from_cart():
    """
    Remove a line by key.

    Request JSON:
    {"key": "photoBooth"}
    """
    data = request.get_json(silent=True) or {}
    if not data.get('key'):
        return api_error(MESSAGES['field_required'], status=400, code='validation_error')

    store = CartStore(session)
    store.remove(data['key'])
    return api_success(data=_cart_payload(store), message=MESSAGES['cart_updated'])


@cart_bp.route('/clear', methods=['POST'])
def clear_cart():
    store = CartStore(session)
    store.clear()
    return api_success(data=_cart_payload(store), message=MESSAGES['cart_cleared'])
