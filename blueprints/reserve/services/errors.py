"""
Reservation wizard exceptions.
Each error carries a machine-readable code used in API responses.
"""


class ReservationError(Exception):
    """Base class for wizard and submission errors."""

    code = 'reservation_error'

    def __init__(self, message: str = None, code: str = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code


class ValidationError(ReservationError):
    code = 'validation_error'


class PostcodeNotFound(ReservationError):
    code = 'postcode_not_found'


class OutOfServiceArea(ReservationError):
    code = 'out_of_service_area'

    def __init__(self, distance_km: float, message: str = None):
        super().__init__(message or f'{distance_km} km is outside the delivery area')
        self.distance_km = distance_km


class PersistenceError(ReservationError):
    code = 'submission_failed'


class OwnershipMismatch(ReservationError):
    """The reservation does not exist or belongs to another user."""

    code = 'reservation_not_found'


class InvalidLineItem(ReservationError, ValueError):
    """A line item has a negative price or a quantity below 1."""

    code = 'invalid_line_item'


class DateNoLongerAvailable(ReservationError):
    code = 'date_no_longer_available'
