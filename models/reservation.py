"""
Reservation data access functions.

This module re-exports the functions of the split modules:
- reservation_state.py: Statuses and manual transitions
- reservation_crud.py: Create, read, update and wire serialization
- reservation_availability.py: Per-day counts and load tiers
"""

# =============================================================================
# RE-EXPORTS
# =============================================================================

# Status management
from .reservation_state import (
    # Constants
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_CANCELLED,
    RESERVATION_STATUSES,
    VALID_TRANSITIONS,
    # Checks
    is_terminal_status,
    can_transition,
    # Transitions
    change_reservation_status,
)

# CRUD operations
from .reservation_crud import (
    # Create
    create_reservation,
    # Read
    get_reservation_by_id,
    get_reservation_by_idempotency_key,
    list_reservations_by_date_range,
    get_reservations_by_user,
    # Update
    update_reservation,
    # Wire shape
    serialize_reservation,
)

# Availability
from .reservation_availability import (
    TIER_FULL,
    TIER_BUSY,
    TIER_OPEN,
    get_availability,
    get_reservation_count_for_date,
    classify_availability,
    get_availability_tiers,
    is_date_available,
)
