#!/usr/bin/env python3
"""
Interactive Listing Wizard

Step handlers for the listing flow:

    select-collection -> select-nft -> select-pricing-method
        -> input-pricing-value -> confirm -> done

Each handler does the user-facing (and, for pricing, network-facing) work
of one step and returns Forward, Back or Cancel. The FlowController applies
those outcomes to the FlowStateManager; handlers never touch flow state.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..core.errors import ListingError
from ..core.flow import FlowState, FlowStateManager
from ..core.flow_controller import Back, Cancel, FlowController, FlowOutcome, Forward, StepHandler, StepOutcome
from .cache import NftCache
from .pricing import (
    PRICING_VALUE_PROMPTS,
    PricingApi,
    calculate_listing_price,
    fetch_floor_price,
    fetch_last_sale_price,
    parse_pricing_method,
    pricing_method_choices,
    validate_pricing_value,
)
from .prompts import Prompter, PromptSignal

logger = logging.getLogger(__name__)


@dataclass
class ListingServices:
    """External collaborators the listing step handlers need."""

    prompter: Prompter
    cache: NftCache
    pricing_api: PricingApi
    wallet_address: str
    chain: str
    expiration: str = "1h"
    marketplaces: str = "opensea"


def _navigation_outcome(answer: Any) -> StepOutcome | None:
    """Translate a prompt's navigation answer into a flow outcome."""
    if answer is PromptSignal.CANCEL:
        return Cancel()
    if answer is PromptSignal.BACK:
        return Back()
    return None


class _KnownPrices:
    """PricingApi that answers from prices already shown to the user."""

    def __init__(self, context: dict[str, Any], fallback: PricingApi):
        self.context = context
        self.fallback = fallback

    def get_floor_price(self, contract_address: str) -> Decimal | None:
        if self.context.get("floorPrice"):
            return Decimal(self.context["floorPrice"])
        return self.fallback.get_floor_price(contract_address)

    def get_nft_last_sale_price(self, contract_address: str, token_id: str) -> Decimal | None:
        if self.context.get("lastSalePrice"):
            return Decimal(self.context["lastSalePrice"])
        return self.fallback.get_nft_last_sale_price(contract_address, token_id)


def select_collection(context: dict[str, Any], services: ListingServices) -> StepOutcome:
    """Choose one of the wallet's cached collections."""
    collections = services.cache.get_cached_collections(services.wallet_address, services.chain)
    if not collections:
        raise ListingError(
            f"No cached collections found for wallet {services.wallet_address} on chain "
            f"{services.chain}. Please run cache command first."
        )

    choices = [(c.slug, f"{c.name} ({c.nft_count} NFTs)") for c in collections]
    answer = services.prompter.select("📚 Select a collection:", choices, allow_back=False)
    outcome = _navigation_outcome(answer)
    if outcome is not None:
        return outcome

    selected = next(c for c in collections if c.slug == answer)
    services.prompter.echo(f"✅ Selected collection: {selected.name}")
    return Forward(FlowState.SELECT_NFT, {"collectionSlug": selected.slug, "collectionName": selected.name})


def select_nft(context: dict[str, Any], services: ListingServices) -> StepOutcome:
    """Choose one cached NFT from the selected collection."""
    collection_name = context.get("collectionName") or context["collectionSlug"]
    nfts = services.cache.get_cached_nfts(context["collectionSlug"], services.wallet_address, services.chain)
    if not nfts:
        raise ListingError(f"No cached NFTs found for collection {collection_name}. Please run cache command first.")

    choices = [(f"{nft.contract}:{nft.token_id}", nft.display_name) for nft in nfts]
    answer = services.prompter.select(f"🖼️  Select an NFT from {collection_name}:", choices)
    outcome = _navigation_outcome(answer)
    if outcome is not None:
        return outcome

    selected = next(nft for nft in nfts if f"{nft.contract}:{nft.token_id}" == answer)
    services.prompter.echo(f"✅ Selected NFT: {selected.display_name}")
    return Forward(
        FlowState.SELECT_PRICING_METHOD,
        {"contract": selected.contract, "tokenId": selected.token_id, "nftName": selected.name},
    )


def select_pricing_method(context: dict[str, Any], services: ListingServices) -> StepOutcome:
    """Choose a pricing method and show the market data it is based on."""
    answer = services.prompter.select("💰 Choose pricing strategy:", pricing_method_choices())
    outcome = _navigation_outcome(answer)
    if outcome is not None:
        return outcome

    method = parse_pricing_method(answer)
    delta: dict[str, Any] = {"method": method.value}

    if method.needs_floor_price:
        services.prompter.echo("📊 Fetching floor price...")
        floor_price = fetch_floor_price(services.pricing_api, context["contract"])
        services.prompter.echo(f"Current floor price: {floor_price} ETH")
        delta["floorPrice"] = str(floor_price)
    elif method.needs_last_sale:
        services.prompter.echo("📊 Fetching last sale price...")
        last_sale = fetch_last_sale_price(services.pricing_api, context["contract"], context["tokenId"])
        services.prompter.echo(f"Last purchase price: {last_sale} ETH")
        delta["lastSalePrice"] = str(last_sale)

    return Forward(FlowState.INPUT_PRICING_VALUE, delta)


def input_pricing_value(context: dict[str, Any], services: ListingServices) -> StepOutcome:
    """Enter the value for the chosen pricing method."""
    method = parse_pricing_method(context["method"])
    answer = services.prompter.ask(
        PRICING_VALUE_PROMPTS[method], validate=lambda value: validate_pricing_value(method, value)
    )
    outcome = _navigation_outcome(answer)
    if outcome is not None:
        return outcome

    services.prompter.echo(f"✅ Selected pricing: {method.value} with value: {answer}")
    return Forward(FlowState.CONFIRM, {"pricingValue": answer})


def confirm_listing(context: dict[str, Any], services: ListingServices) -> StepOutcome:
    """Show the calculated listing and ask for confirmation; declining goes back."""
    listing_price = calculate_listing_price(
        context["method"],
        context["pricingValue"],
        _KnownPrices(context, services.pricing_api),
        context["contract"],
        context["tokenId"],
    )

    prompter = services.prompter
    prompter.echo("\n📋 Listing summary")
    prompter.echo(f"  NFT: #{context['tokenId']} - {context.get('nftName') or 'Unnamed'}")
    prompter.echo(f"  Contract: {context['contract']}")
    prompter.echo(f"  Price: {listing_price.price.normalize():f} ETH")
    prompter.echo(f"  Pricing: {listing_price.info}")
    prompter.echo(f"  Expiration: {services.expiration}")
    prompter.echo(f"  Marketplaces: {services.marketplaces}")

    answer = prompter.confirm("Create this listing?")
    if answer is PromptSignal.CANCEL:
        return Cancel()
    if not answer:
        return Back()

    return Forward(
        FlowState.DONE,
        {"price": format(listing_price.price.normalize(), "f"), "pricingInfo": listing_price.info},
    )


LISTING_STEP_HANDLERS: dict[FlowState, StepHandler] = {
    FlowState.SELECT_COLLECTION: select_collection,
    FlowState.SELECT_NFT: select_nft,
    FlowState.SELECT_PRICING_METHOD: select_pricing_method,
    FlowState.INPUT_PRICING_VALUE: input_pricing_value,
    FlowState.CONFIRM: confirm_listing,
}


def run_listing_wizard(
    services: ListingServices,
    manager: FlowStateManager | None = None,
    on_step: Callable[[FlowStateManager], None] | None = None,
) -> FlowOutcome:
    """
    Run the interactive listing wizard to completion or cancellation.

    Args:
        services: Prompt surface, cache reader and pricing API
        manager: Existing (e.g. resumed) manager; a fresh one is created if omitted
        on_step: Checkpoint callback invoked after every step

    Returns:
        FlowOutcome with the final context
    """
    manager = manager or FlowStateManager()
    logger.debug(f"Starting interactive listing wizard at {manager.get_current_state()}")

    controller = FlowController(manager, LISTING_STEP_HANDLERS, on_step=on_step)
    outcome = controller.run(services)

    if outcome.cancelled:
        logger.info("Listing cancelled by user")
    return outcome
