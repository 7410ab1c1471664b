#!/usr/bin/env python3
"""
Listing Price Calculation

Calculates a listing price from a pricing method and a user-supplied value.
Floor and last-sale prices come from a PricingApi collaborator; the
arithmetic here is pure and rounded to 6 decimal places.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Protocol

from ..core.errors import PricingError, ValidationError
from .validators import (
    validate_absolute_price,
    validate_floor_diff,
    validate_profit_margin,
    validate_profit_percent,
)

logger = logging.getLogger(__name__)

PRICE_PRECISION = Decimal("0.000001")


class PricingMethod(Enum):
    """Ways of deriving a listing price."""

    ABSOLUTE = "absolute"
    FLOOR_DIFF = "floor-diff"
    PROFIT_MARGIN = "profit-margin"
    PROFIT_PERCENT = "profit-percent"

    @property
    def needs_floor_price(self) -> bool:
        return self is PricingMethod.FLOOR_DIFF

    @property
    def needs_last_sale(self) -> bool:
        return self in (PricingMethod.PROFIT_MARGIN, PricingMethod.PROFIT_PERCENT)


PRICING_METHOD_DESCRIPTIONS = {
    PricingMethod.ABSOLUTE: "Absolute price (e.g., 0.1 ETH)",
    PricingMethod.FLOOR_DIFF: "Floor price difference (e.g., +0.1, -5%)",
    PricingMethod.PROFIT_MARGIN: "Profit margin over purchase price (e.g., +0.01 ETH)",
    PricingMethod.PROFIT_PERCENT: "Profit percentage over purchase price (e.g., +10%)",
}

PRICING_VALUE_PROMPTS = {
    PricingMethod.ABSOLUTE: "Enter price in ETH",
    PricingMethod.FLOOR_DIFF: "Enter price difference (e.g., +0.1, -0.1, +10%, -5%)",
    PricingMethod.PROFIT_MARGIN: "Enter profit margin in ETH (e.g., 0.01)",
    PricingMethod.PROFIT_PERCENT: "Enter profit percentage (e.g., 10 for 10%)",
}

_VALUE_VALIDATORS = {
    PricingMethod.ABSOLUTE: validate_absolute_price,
    PricingMethod.FLOOR_DIFF: validate_floor_diff,
    PricingMethod.PROFIT_MARGIN: validate_profit_margin,
    PricingMethod.PROFIT_PERCENT: validate_profit_percent,
}


class PricingApi(Protocol):
    """Price lookups needed by the floor and profit pricing methods."""

    def get_floor_price(self, contract_address: str) -> Decimal | None: ...

    def get_nft_last_sale_price(self, contract_address: str, token_id: str) -> Decimal | None: ...


@dataclass(frozen=True)
class ListingPrice:
    """Calculated listing price and a human-readable explanation."""

    price: Decimal
    info: str


def pricing_method_choices() -> list[tuple[str, str]]:
    """(value, description) pairs for the pricing method prompt."""
    return [(method.value, description) for method, description in PRICING_METHOD_DESCRIPTIONS.items()]


def parse_pricing_method(method: str | PricingMethod) -> PricingMethod:
    """Coerce a method name, raising PricingError for unknown methods."""
    if isinstance(method, PricingMethod):
        return method
    try:
        return PricingMethod(method)
    except ValueError:
        raise PricingError(f"Unknown pricing method: {method}") from None


def validate_pricing_value(method: str | PricingMethod, value: str) -> str:
    """
    Check a pricing value against its method's format.

    Returns:
        The stripped value

    Raises:
        ValidationError: If the value does not fit the method
    """
    value = (value or "").strip()
    _VALUE_VALIDATORS[parse_pricing_method(method)](value)
    return value


def fetch_floor_price(api: PricingApi, contract_address: str) -> Decimal:
    """Get the collection floor price, raising PricingError if unavailable."""
    floor_price = api.get_floor_price(contract_address)
    if not floor_price:
        raise PricingError("Could not fetch floor price")
    logger.debug(f"Floor price: {floor_price} ETH")
    return Decimal(str(floor_price))


def fetch_last_sale_price(api: PricingApi, contract_address: str, token_id: str) -> Decimal:
    """Get the NFT's last sale price, raising PricingError if unavailable."""
    last_sale = api.get_nft_last_sale_price(contract_address, token_id)
    if not last_sale:
        raise PricingError("Could not fetch last sale price. The NFT may not have any sales history.")
    logger.debug(f"Last purchase price: {last_sale} ETH")
    return Decimal(str(last_sale))


def _format_eth(amount: Decimal) -> str:
    return format(amount.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP).normalize(), "f")


def calculate_listing_price(
    method: str | PricingMethod,
    value: str,
    api: PricingApi | None = None,
    contract_address: str | None = None,
    token_id: str | None = None,
) -> ListingPrice:
    """
    Calculate a listing price.

    Args:
        method: Pricing method
        value: Method-specific value ("0.1", "+5%", "0.01", "10")
        api: Price lookups, required by all methods except absolute
        contract_address: NFT contract address
        token_id: NFT token ID

    Returns:
        ListingPrice rounded to 6 decimal places

    Raises:
        PricingError: Unknown method, unavailable market data, or a price <= 0
        ValidationError: If value does not fit the method
    """
    pricing_method = parse_pricing_method(method)
    logger.debug(f"Calculating price using method: {pricing_method.value}, value: {value}")

    if pricing_method is not PricingMethod.ABSOLUTE and api is None:
        raise PricingError(f"Pricing method {pricing_method.value} needs market data")

    if pricing_method is PricingMethod.ABSOLUTE:
        try:
            listing_price = validate_absolute_price(value)
        except ValidationError:
            raise PricingError("Listing price must be greater than 0") from None
        info = f"{_format_eth(listing_price)} ETH (absolute price)"

    elif pricing_method is PricingMethod.FLOOR_DIFF:
        diff = validate_floor_diff(value)
        floor_price = fetch_floor_price(api, contract_address)
        delta = floor_price * diff.amount / 100 if diff.is_percentage else diff.amount
        listing_price = floor_price + delta if diff.sign == "+" else floor_price - delta
        info = f"{value} from floor (floor: {_format_eth(floor_price)} ETH)"

    elif pricing_method is PricingMethod.PROFIT_MARGIN:
        margin = validate_profit_margin(value)
        purchase_price = fetch_last_sale_price(api, contract_address, token_id)
        listing_price = purchase_price + margin
        info = f"purchase price ({_format_eth(purchase_price)} ETH) + {_format_eth(margin)} ETH margin"

    else:
        percent = validate_profit_percent(value)
        purchase_price = fetch_last_sale_price(api, contract_address, token_id)
        profit = purchase_price * percent / 100
        listing_price = purchase_price + profit
        info = f"purchase price ({_format_eth(purchase_price)} ETH) + {_format_eth(percent)}% ({_format_eth(profit)} ETH)"

    listing_price = listing_price.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)
    if listing_price <= 0:
        raise PricingError("Listing price must be greater than 0")

    logger.debug(f"Calculated price: {listing_price} ETH, info: {info}")
    return ListingPrice(price=listing_price, info=info)
