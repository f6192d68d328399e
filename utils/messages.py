"""
Centralized UI messages.
All user-facing text in one place for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'Signed out',
    'reservation_created': 'Reservation submitted',
    'reservation_updated': 'Reservation updated',
    'status_updated': 'Reservation status updated',
    'cart_updated': 'Cart updated',
    'cart_cleared': 'Cart cleared',
    'work_created': 'Package created',
    'work_updated': 'Package updated',
    'work_deleted': 'Package deleted',

    # Auth
    'invalid_credentials': 'Invalid username or password',
    'account_disabled': 'Your account has been disabled',
    'sign_in_required': 'Please sign in to continue',
    'permission_denied': 'You do not have permission for this action',

    # Wizard validation
    'field_required': 'This field is required',
    'slot_required': 'Please choose an item for {label}',
    'unknown_slot': 'Unknown selection: {slot}',
    'unknown_item': 'Item not found: {key}',
    'item_not_in_slot': 'Item {key} cannot be chosen for {label}',
    'date_required': 'Please choose an event date',
    'invalid_date': 'Invalid date format. Use YYYY-MM-DD',
    'date_in_past': 'The event date cannot be in the past',
    'date_full': 'This date is fully booked',
    'invalid_email': 'Invalid email address',
    'invalid_phone': 'Invalid phone number',
    'invalid_step': 'Invalid step',
    'step1_locked': 'Package items of an existing reservation cannot be changed',

    # Delivery
    'postcode_not_ready': 'Enter a 4-digit postcode',
    'postcode_invalid': 'Postcodes contain digits only',
    'postcode_not_found': 'We could not find that postcode',
    'out_of_service_area': 'Sorry, {distance_km} km is outside our delivery area',
    'delivery_fee_required': 'Check delivery to your postcode first',

    # Submission
    'authentication_required': 'Please sign in to confirm your reservation',
    'date_no_longer_available': 'Sorry, the selected date has just become fully booked',
    'submission_failed': 'We could not save your reservation. Please try again',
    'invalid_line_item': 'Your selection contains an invalid price',
    'reservation_not_found': 'Reservation not found',
    'reservation_closed': 'This reservation can no longer be changed',

    # Admin
    'invalid_status': 'Invalid status',
    'invalid_transition': 'Cannot change status from {current} to {new}',

    # Works
    'work_not_found': 'Package not found',
    'invalid_work': 'Invalid package: {error}',

    # Availability
    'availability_error': 'Availability could not be loaded',

    # Generic
    'not_found': 'Not found',
    'server_error': 'Internal server error',
    'invalid_value': 'Invalid value',
}
