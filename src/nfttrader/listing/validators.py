#!/usr/bin/env python3
"""
Listing Input Validators

Pure functions that check and normalize listing parameters, used both by
the interactive prompts and by direct-mode command-line options. Each
validator returns the normalized value or raises ValidationError.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ..core.errors import ValidationError

FLOOR_DIFF_PATTERN = re.compile(r"^([+-])(\d*\.?\d*)(%)?$")
EXPIRATION_PATTERN = re.compile(r"^(\d+)([dhm])$")
ETH_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
TOKEN_ID_PATTERN = re.compile(r"^(\d+|0x[a-fA-F0-9]+)$")

SUPPORTED_MARKETPLACES = ("opensea",)

_UNIT_SECONDS = {"d": 24 * 60 * 60, "h": 60 * 60, "m": 60}


@dataclass(frozen=True)
class FloorDiff:
    """Parsed floor price difference such as +0.1 or -5%."""

    sign: str
    amount: Decimal
    is_percentage: bool


def _parse_decimal(value: str) -> Decimal | None:
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def validate_floor_diff(floor_diff: str) -> FloorDiff:
    """Validate a floor difference string (e.g. "+0.1", "-5%")."""
    if not floor_diff:
        raise ValidationError("Floor difference cannot be empty")

    match = FLOOR_DIFF_PATTERN.match(floor_diff.strip())
    if not match:
        raise ValidationError('Invalid floor-diff format. Use format like "+0.1", "-0.1", "+10%", or "-5%"')

    sign, amount_str, percent = match.groups()
    amount = _parse_decimal(amount_str)
    if amount is None or amount < 0:
        raise ValidationError("Floor difference must be a positive number")

    return FloorDiff(sign=sign, amount=amount, is_percentage=bool(percent))


def validate_profit_margin(profit_margin: str) -> Decimal:
    """Validate a profit margin in ETH (e.g. "0.01")."""
    if not profit_margin:
        raise ValidationError("Profit margin cannot be empty")

    margin = _parse_decimal(profit_margin)
    if margin is None:
        raise ValidationError("Invalid profit-margin value. Must be a number (e.g., 0.01)")
    return margin


def validate_profit_percent(profit_percent: str) -> Decimal:
    """Validate a profit percentage (e.g. "10" for 10%)."""
    if not profit_percent:
        raise ValidationError("Profit percentage cannot be empty")

    percent = _parse_decimal(profit_percent)
    if percent is None:
        raise ValidationError("Invalid profit-percent value. Must be a number (e.g., 10 for 10%)")
    return percent


def validate_absolute_price(price: str) -> Decimal:
    """Validate an absolute listing price in ETH."""
    if not price:
        raise ValidationError("Price cannot be empty")

    amount = _parse_decimal(price)
    if amount is None or amount <= 0:
        raise ValidationError("Please enter a valid positive number")
    return amount


def validate_expiration(expiration: str) -> int:
    """
    Validate an expiration such as "30d", "12h" or "45m".

    Returns:
        Expiration length in seconds
    """
    if not expiration:
        raise ValidationError("Expiration time cannot be empty")

    match = EXPIRATION_PATTERN.match(expiration.strip())
    if not match:
        raise ValidationError(
            'Invalid expiration format. Use format like "30d" (days), "12h" (hours), or "45m" (minutes)'
        )

    amount, unit = int(match.group(1)), match.group(2)
    if amount <= 0:
        raise ValidationError("Expiration time must be greater than 0")

    return amount * _UNIT_SECONDS[unit]


def validate_eth_address(address: str) -> str:
    """Validate an Ethereum address and return it lower-cased."""
    if not address:
        raise ValidationError("Address cannot be empty")
    if not ETH_ADDRESS_PATTERN.match(address):
        raise ValidationError(
            "Invalid Ethereum address format. Must start with 0x followed by 40 hex characters"
        )
    return address.lower()


def validate_token_id(token_id: str) -> str:
    """Validate a token ID (decimal integer or hex string)."""
    if not token_id:
        raise ValidationError("Token ID cannot be empty")
    if not TOKEN_ID_PATTERN.match(token_id):
        raise ValidationError(
            "Invalid token ID format. Must be a positive integer or hex string (e.g., 123 or 0x7b)"
        )
    return token_id


def validate_marketplaces(marketplaces: str) -> list[str]:
    """Validate a comma-separated marketplace list."""
    if not marketplaces:
        raise ValidationError("Marketplaces cannot be empty")

    names = [name.strip() for name in marketplaces.lower().split(",")]
    invalid = [name for name in names if name not in SUPPORTED_MARKETPLACES]
    if invalid:
        raise ValidationError(f"Invalid marketplaces: {', '.join(invalid)}. Only OpenSea is supported.")
    return names
