"""
Reservation wizard blueprint.
Registers the wizard step routes and the lookup endpoints the steps use.

Route modules:
- routes/wizard.py - Step submission, navigation and confirmation
- routes/lookups.py - Slots, delivery fee, availability and add-ons
"""

from flask import Blueprint

reserve_bp = Blueprint('reserve', __name__)

# =============================================================================
# REGISTER ROUTES
# =============================================================================

from blueprints.reserve.routes import wizard, lookups  # noqa: E402

wizard.register_routes(reserve_bp)
lookups.register_routes(reserve_bp)
