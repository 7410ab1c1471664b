"""
Listing Package

Everything the listing command needs besides flow bookkeeping: price
calculation, input validation, the cached holdings reader, terminal prompts
and the wizard's step handlers.
"""

from .pricing import ListingPrice, PricingMethod, calculate_listing_price
from .wizard import LISTING_STEP_HANDLERS, ListingServices, run_listing_wizard

__all__ = [
    "ListingPrice",
    "PricingMethod",
    "calculate_listing_price",
    "LISTING_STEP_HANDLERS",
    "ListingServices",
    "run_listing_wizard",
]
