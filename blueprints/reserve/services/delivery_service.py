"""
Delivery Service - delivery fee from postcode to warehouse distance.

The fee is a step function of the great-circle distance between the
postcode's coordinate and the warehouse:

    distance <= 10 km  ->  50
    distance <= 20 km  ->  80
    distance <= 50 km  -> 150
    beyond             ->  outside the service area
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Optional, Tuple

from flask import current_app, has_app_context

from blueprints.reserve.services.errors import (
    ValidationError, PostcodeNotFound, OutOfServiceArea
)
from utils.validators import validate_postcode

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

DEFAULT_WAREHOUSE = (-33.8688, 151.2093)
DEFAULT_FEE_TIERS = ((10, 50), (20, 80), (50, 150))


# =============================================================================
# QUOTE RESULT
# =============================================================================

@dataclass(frozen=True)
class DeliveryQuote:
    """Outcome of a delivery fee lookup."""

    OK = 'ok'
    NOT_READY = 'not_ready'
    INVALID = 'invalid'
    NOT_FOUND = 'not_found'
    OUT_OF_AREA = 'out_of_area'

    status: str
    postcode: str = ''
    fee: Optional[float] = None
    locality: Optional[str] = None
    distance_km: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == self.OK

    @property
    def is_ready(self) -> bool:
        """False while the postcode is still being typed."""
        return self.status != self.NOT_READY

    @property
    def error_code(self) -> Optional[str]:
        return {
            self.INVALID: ValidationError.code,
            self.NOT_FOUND: PostcodeNotFound.code,
            self.OUT_OF_AREA: OutOfServiceArea.code,
        }.get(self.status)

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# DISTANCE
# =============================================================================

def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two coordinates.

    Args:
        lat1, lon1: First point in decimal degrees
        lat2, lon2: Second point in decimal degrees

    Returns:
        float: Distance in kilometres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def fee_for_distance(distance_km: float, tiers=DEFAULT_FEE_TIERS) -> Optional[float]:
    """
    Look up the fee tier for a distance.

    Args:
        distance_km: Distance in km
        tiers: Ascending (max_km, fee) pairs with inclusive upper bounds

    Returns:
        Fee, or None if the distance is beyond the last tier
    """
    for max_km, fee in tiers:
        if distance_km <= max_km:
            return fee
    return None


def _default_warehouse() -> Tuple[float, float]:
    if has_app_context():
        return (
            current_app.config.get('WAREHOUSE_LATITUDE', DEFAULT_WAREHOUSE[0]),
            current_app.config.get('WAREHOUSE_LONGITUDE', DEFAULT_WAREHOUSE[1]),
        )
    return DEFAULT_WAREHOUSE


def _default_tiers():
    if has_app_context():
        return current_app.config.get('DELIVERY_FEE_TIERS', DEFAULT_FEE_TIERS)
    return DEFAULT_FEE_TIERS


# =============================================================================
# FEE CALCULATION
# =============================================================================

def compute_delivery_fee(
    postcode: str,
    directory,
    warehouse: Optional[Tuple[float, float]] = None,
    tiers=None
) -> DeliveryQuote:
    """
    Compute the delivery fee for a postcode.

    Nothing is looked up until the postcode has exactly 4 characters.

    Args:
        postcode: Postcode as typed by the customer
        directory: Object with lookup(postcode) -> {latitude, longitude, locality} | None
        warehouse: (latitude, longitude) of the warehouse (default from config)
        tiers: Fee tiers (default from config)

    Returns:
        DeliveryQuote with status ok, not_ready, invalid, not_found or out_of_area
    """
    postcode = str(postcode or '').strip()

    if len(postcode) != 4:
        return DeliveryQuote(status=DeliveryQuote.NOT_READY, postcode=postcode)

    if not validate_postcode(postcode):
        return DeliveryQuote(status=DeliveryQuote.INVALID, postcode=postcode)

    location = directory.lookup(postcode)
    if not location:
        logger.info(f'[Delivery] Postcode {postcode} not found')
        return DeliveryQuote(status=DeliveryQuote.NOT_FOUND, postcode=postcode)

    warehouse_lat, warehouse_lon = warehouse or _default_warehouse()
    distance = round(haversine_km(
        float(location['latitude']), float(location['longitude']),
        warehouse_lat, warehouse_lon
    ), 2)

    fee = fee_for_distance(distance, tiers or _default_tiers())
    if fee is None:
        logger.info(f'[Delivery] Postcode {postcode} is {distance} km away, outside area')
        return DeliveryQuote(
            status=DeliveryQuote.OUT_OF_AREA,
            postcode=postcode,
            locality=location.get('locality'),
            distance_km=distance
        )

    return DeliveryQuote(
        status=DeliveryQuote.OK,
        postcode=postcode,
        fee=float(fee),
        locality=location.get('locality'),
        distance_km=distance
    )
