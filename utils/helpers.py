"""
Miscellaneous utility helper functions.
"""

import secrets
from decimal import Decimal, ROUND_HALF_UP


CENT = Decimal('0.01')


def generate_idempotency_key(prefix: str = 'wiz') -> str:
    """
    Generate a random token identifying one wizard session's submission.

    Args:
        prefix: Short prefix to make keys recognizable in the database

    Returns:
        Token string, e.g. 'wiz-3qJ4...'
    """
    return f'{prefix}-{secrets.token_urlsafe(16)}'


def to_money(value) -> Decimal:
    """Convert a number to a Decimal rounded to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value, symbol: str = '$') -> str:
    """
    Format an amount for display.

    Args:
        value: Amount (int, float or Decimal)
        symbol: Currency symbol

    Returns:
        e.g. '$260.00'
    """
    return f'{symbol}{to_money(value):,.2f}'
