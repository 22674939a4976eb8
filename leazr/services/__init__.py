"""Business logic services."""

from leazr.services.commission import calculate_commission_by_level, resolve_commission
from leazr.services.offers import create_offer, delete_offer, get_offer, get_offers
from leazr.services.pricing import calculate_financed_amount, quote
from leazr.services.ranges import resolve_range, validate_ranges
from leazr.services.workflow import (
    process_info_response,
    request_info,
    update_offer_status,
)

__all__ = [
    "calculate_commission_by_level",
    "calculate_financed_amount",
    "create_offer",
    "delete_offer",
    "get_offer",
    "get_offers",
    "process_info_response",
    "quote",
    "request_info",
    "resolve_commission",
    "resolve_range",
    "update_offer_status",
    "validate_ranges",
]
