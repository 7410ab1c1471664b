#!/usr/bin/env python3
"""
Pending Listing Requests

A confirmed listing is written as a pending request file for the signer to
pick up. Order construction and signing are not done here.
"""

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..core.json_utils import write_json
from .validators import validate_expiration, validate_marketplaces

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingRequest:
    """Everything a signer needs to place one listing."""

    contract: str
    token_id: str
    price_eth: str
    pricing_info: str
    expiration_time: int
    marketplaces: list[str]
    chain: str
    wallet_address: str
    nft_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_listing_request(
    context: dict[str, Any],
    wallet_address: str,
    chain: str,
    expiration: str,
    marketplaces: str,
    now: float | None = None,
) -> ListingRequest:
    """
    Build a listing request from a completed wizard context.

    Args:
        context: Final flow context (contract, tokenId, price, pricingInfo, ...)
        wallet_address: Seller wallet
        chain: Chain name
        expiration: Expiration such as "1h" or "30d"
        marketplaces: Comma-separated marketplace list
        now: Epoch seconds used as the expiration base (default: current time)

    Raises:
        ValidationError: If expiration or marketplaces are malformed
        KeyError: If the context lacks listing fields
    """
    expiration_seconds = validate_expiration(expiration)
    base_time = time.time() if now is None else now

    return ListingRequest(
        contract=context["contract"],
        token_id=str(context["tokenId"]),
        price_eth=str(Decimal(str(context["price"]))),
        pricing_info=context.get("pricingInfo", ""),
        expiration_time=int(base_time + expiration_seconds),
        marketplaces=validate_marketplaces(marketplaces),
        chain=chain,
        wallet_address=wallet_address,
        nft_name=context.get("nftName"),
    )


def write_pending_listing(request: ListingRequest, pending_dir: Path) -> Path:
    """
    Write a listing request into the pending directory.

    Returns:
        Path of the written file
    """
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    base_name = f"{timestamp}_{request.contract[:10]}_{request.token_id}"
    path = pending_dir / f"{base_name}.json"
    count = 1
    while path.exists():
        path = pending_dir / f"{base_name}_{count}.json"
        count += 1

    write_json(path, request.to_dict())
    logger.info(f"Wrote pending listing request: {path}")
    return path
