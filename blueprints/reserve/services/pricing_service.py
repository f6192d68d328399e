"""
Pricing Service - Reservation total calculation.

The same function prices the step 4 summary and the persisted total, so the
amount shown to the customer is the amount stored.

Handles:
- Line item validation
- Total over core items, optional items, add-ons and the delivery fee
- Per-section breakdown for display
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Dict, Any

from blueprints.reserve.services.errors import InvalidLineItem
from utils.helpers import CENT, to_money


@dataclass(frozen=True)
class LineItem:
    """A priced reservation line. The price is captured at booking time."""

    key: str
    quantity: int
    price_at_booking: float

    def subtotal(self) -> Decimal:
        return to_money(self.price_at_booking) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'quantity': self.quantity,
            'priceAtBooking': self.price_at_booking,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            key=data['key'],
            quantity=data.get('quantity', 1),
            price_at_booking=data['priceAtBooking'],
        )


def _coerce(item) -> LineItem:
    if isinstance(item, LineItem):
        return item
    return LineItem.from_dict(item)


def validate_line_items(items: Iterable) -> List[LineItem]:
    """
    Check and convert line items.

    Args:
        items: LineItem objects or {key, quantity, priceAtBooking} dicts

    Returns:
        List of LineItem

    Raises:
        InvalidLineItem: If a quantity is below 1 or a price is negative
    """
    validated = []
    for item in items or []:
        line = _coerce(item)
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
            raise InvalidLineItem(f'Invalid quantity for {line.key}: {line.quantity}')
        if line.price_at_booking is None or line.price_at_booking < 0:
            raise InvalidLineItem(f'Invalid price for {line.key}: {line.price_at_booking}')
        validated.append(line)
    return validated


def _section_total(items: List[LineItem]) -> Decimal:
    return sum((line.subtotal() for line in items), Decimal('0'))


def compute_total(core_items=None, optional_items=None, add_ons=None,
                  delivery_fee=0) -> float:
    """
    Calculate the reservation total.

    total = sum(quantity * price) over core, optional and add-on items
            + delivery fee

    Args:
        core_items: Core line items
        optional_items: Optional line items
        add_ons: Add-on line items
        delivery_fee: Delivery fee (>= 0)

    Returns:
        float: Total rounded to cents

    Raises:
        InvalidLineItem: On a negative price, quantity below 1 or negative fee
    """
    fee = delivery_fee or 0
    if fee < 0:
        raise InvalidLineItem(f'Invalid delivery fee: {fee}')

    total = (
        _section_total(validate_line_items(core_items))
        + _section_total(validate_line_items(optional_items))
        + _section_total(validate_line_items(add_ons))
        + to_money(fee)
    )
    return float(total.quantize(CENT))


def build_price_breakdown(core_items=None, optional_items=None, add_ons=None,
                          delivery_fee=0) -> Dict[str, Any]:
    """
    Build a per-section price summary for the step 4 display.

    Returns:
        dict: {
            'items': [{key, quantity, priceAtBooking, subtotal}],
            'items_subtotal': float,
            'optional_items_subtotal': float,
            'add_ons_subtotal': float,
            'delivery_fee': float,
            'total': float
        }
    """
    core = validate_line_items(core_items)
    optional = validate_line_items(optional_items)
    extras = validate_line_items(add_ons)

    lines = []
    for line in core + optional + extras:
        entry = line.to_dict()
        entry['subtotal'] = float(line.subtotal())
        lines.append(entry)

    return {
        'items': lines,
        'items_subtotal': float(_section_total(core)),
        'optional_items_subtotal': float(_section_total(optional)),
        'add_ons_subtotal': float(_section_total(extras)),
        'delivery_fee': float(to_money(delivery_fee or 0)),
        'total': compute_total(core, optional, extras, delivery_fee),
    }
