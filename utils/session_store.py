"""
Session-scoped stores.
The reservation wizard and the cart keep their data in the user's session;
routes pass `flask.session` (or any dict-like object in tests) explicitly.
"""

from decimal import Decimal

from utils.helpers import to_money


WIZARD_SESSION_KEY = 'reservation_wizard'
CART_SESSION_KEY = 'cart'


def _mark_modified(session) -> None:
    if hasattr(session, 'modified'):
        session.modified = True


class WizardSessionStore:
    """Loads and saves the wizard state of one session."""

    def __init__(self, session):
        self.session = session

    def load(self):
        """Return the stored WizardState, or None if no wizard is in progress."""
        # Imported here: the reserve blueprint package imports this module
        from blueprints.reserve.services.wizard_state import WizardState

        data = self.session.get(WIZARD_SESSION_KEY)
        if not data:
            return None
        return WizardState.from_dict(data)

    def load_or_start(self, work_id: int = 0):
        from blueprints.reserve.services.wizard_state import WizardState

        state = self.load()
        if state is None:
            state = WizardState.new(work_id=work_id)
            self.save(state)
        return state

    def save(self, state) -> None:
        self.session[WIZARD_SESSION_KEY] = state.to_dict()
        _mark_modified(self.session)

    def clear(self) -> None:
        self.session.pop(WIZARD_SESSION_KEY, None)
        _mark_modified(self.session)


class CartStore:
    """
    Shopping cart of catalog items.

    Lines are keyed by catalog key; adding an item already in the cart
    increases its quantity.
    """

    def __init__(self, session):
        self.session = session

    def items(self) -> list:
        return list(self.session.get(CART_SESSION_KEY, []))

    def _save(self, items: list) -> None:
        self.session[CART_SESSION_KEY] = items
        _mark_modified(self.session)

    def add(self, item: dict, quantity: int = 1) -> list:
        """
        Add a catalog item or change its quantity.

        Args:
            item: Catalog row (key, name, base_price)
            quantity: Quantity to add; negative values decrease it and a
                      line that reaches zero is removed

        Returns:
            Updated cart lines
        """
        items = self.items()
        for line in items:
            if line['key'] == item['key']:
                line['quantity'] += quantity
                break
        else:
            items.append({
                'key': item['key'],
                'title': item['name'],
                'price': item['base_price'],
                'quantity': quantity,
            })

        items = [line for line in items if line['quantity'] > 0]
        self._save(items)
        return items

    def remove(self, key: str) -> list:
        items = [line for line in self.items() if line['key'] != key]
        self._save(items)
        return items

    def clear(self) -> None:
        self.session.pop(CART_SESSION_KEY, None)
        _mark_modified(self.session)

    def total(self) -> float:
        total = sum(
            (to_money(line['price']) * line['quantity'] for line in self.items()),
            Decimal('0')
        )
        return float(total)
