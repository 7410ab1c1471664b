#!/usr/bin/env python3
"""
Listing CLI - Create NFT Listings

Runs the interactive listing wizard (with resumable sessions) or, when the
NFT and pricing are given as options, calculates the listing directly.
Either way a confirmed listing is written to the pending listings directory.
"""

import click

from ..core.config import SUPPORTED_CHAINS, get_config
from ..core.errors import FlowStateError, ListingError, OpenSeaApiError, PricingError, ValidationError
from ..core.flow import FlowStateManager
from ..core.session_store import FlowSessionStore
from ..listing.cache import NftCache
from ..listing.pricing import PricingMethod, calculate_listing_price
from ..listing.prompts import ClickPrompter
from ..listing.request import ListingRequest, build_listing_request, write_pending_listing
from ..listing.validators import validate_eth_address, validate_expiration, validate_marketplaces, validate_token_id
from ..listing.wizard import ListingServices, run_listing_wizard
from ..opensea.client import OpenSeaClient

LISTING_ERRORS = (ListingError, PricingError, ValidationError, OpenSeaApiError, FlowStateError)


def default_session_name(wallet: str, chain: str) -> str:
    return f"list-{wallet}-{chain}"


def _direct_pricing(
    price: str | None, floor_diff: str | None, profit_margin: str | None, profit_percent: str | None
) -> tuple[PricingMethod, str] | None:
    """Pick the single pricing option given in direct mode."""
    given = [
        (method, value)
        for method, value in (
            (PricingMethod.ABSOLUTE, price),
            (PricingMethod.FLOOR_DIFF, floor_diff),
            (PricingMethod.PROFIT_MARGIN, profit_margin),
            (PricingMethod.PROFIT_PERCENT, profit_percent),
        )
        if value is not None
    ]
    if len(given) > 1:
        raise click.UsageError("Specify only one of --price, --floor-diff, --profit-margin, --profit-percent")
    return given[0] if given else None


def _echo_created(request: ListingRequest, path) -> None:
    click.echo("\n✅ Listing request created")
    click.echo(f"  NFT: #{request.token_id} ({request.contract})")
    click.echo(f"  Price: {request.price_eth} ETH")
    click.echo(f"  Pricing: {request.pricing_info}")
    click.echo(f"  Marketplaces: {', '.join(request.marketplaces)}")
    click.echo(f"  Saved to: {path}")


@click.command("list")
@click.option("--wallet", required=True, help="Wallet address holding the NFT")
@click.option("--chain", type=click.Choice(SUPPORTED_CHAINS), help="Chain (default: DEFAULT_CHAIN)")
@click.option("--expiration", default=None, help="Listing expiration, e.g. 1h, 7d, 30m")
@click.option("--marketplaces", default=None, help="Comma-separated marketplaces")
@click.option("--address", help="NFT contract address (direct mode)")
@click.option("--token-id", help="NFT token ID (direct mode)")
@click.option("--price", help="Absolute price in ETH")
@click.option("--floor-diff", help="Difference from floor price, e.g. +0.1 or -5%")
@click.option("--profit-margin", help="Profit margin over last purchase price in ETH")
@click.option("--profit-percent", help="Profit percentage over last purchase price")
@click.option("--resume/--no-resume", default=True, help="Resume an interrupted wizard session")
@click.option("--session", "session_name", help="Session name (default: per wallet and chain)")
@click.pass_context
def list_nft(
    ctx: click.Context,
    wallet: str,
    chain: str | None,
    expiration: str | None,
    marketplaces: str | None,
    address: str | None,
    token_id: str | None,
    price: str | None,
    floor_diff: str | None,
    profit_margin: str | None,
    profit_percent: str | None,
    resume: bool,
    session_name: str | None,
) -> None:
    """
    List an NFT for sale.

    Without --address/--token-id the interactive wizard walks through
    collection, NFT, pricing method, pricing value and confirmation. Enter
    'b' to go back a step and 'q' to cancel. Progress is saved after every
    step, so an interrupted wizard resumes where it left off.

    Examples:
      nfttrader list --wallet 0xabc...
      nfttrader list --wallet 0xabc... --no-resume
      nfttrader list --wallet 0xabc... --address 0xdef... --token-id 42 --floor-diff +5%
    """
    config = get_config()
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False

    chain = chain or config.listing.default_chain
    expiration = expiration or config.listing.default_expiration
    marketplaces = marketplaces or config.listing.marketplaces

    try:
        wallet = validate_eth_address(wallet)
        validate_expiration(expiration)
        validate_marketplaces(marketplaces)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    client = OpenSeaClient(
        config.opensea.api_key,
        chain,
        base_url=config.opensea.base_url,
        timeout=config.opensea.timeout,
        retries=config.opensea.retries,
    )

    pricing = _direct_pricing(price, floor_diff, profit_margin, profit_percent)
    if address or token_id or pricing:
        if not (address and token_id and pricing):
            raise click.UsageError(
                "Direct mode needs --address, --token-id and one of "
                "--price, --floor-diff, --profit-margin, --profit-percent"
            )
        _list_direct(config, client, wallet, chain, expiration, marketplaces, address, token_id, pricing)
        return

    store = FlowSessionStore(config.flow.session_dir)
    name = session_name or default_session_name(wallet, chain)
    manager = _start_or_resume(store, name, resume, config.flow.max_history_size)

    if verbose:
        click.echo(f"Session: {name} ({store.session_dir})")

    services = ListingServices(
        prompter=ClickPrompter(),
        cache=NftCache(config.cache.cache_dir, config.cache.expiry_hours),
        pricing_api=client,
        wallet_address=wallet,
        chain=chain,
        expiration=expiration,
        marketplaces=marketplaces,
    )

    try:
        outcome = run_listing_wizard(services, manager, on_step=lambda m: store.save(name, m))
    except LISTING_ERRORS as e:
        if store.exists(name):
            click.echo(f"Progress saved. Re-run to resume session '{name}'.", err=True)
        raise click.ClickException(str(e)) from e

    if outcome.cancelled:
        store.clear(name)
        click.echo("\n❌ Listing cancelled")
        return

    try:
        request = build_listing_request(outcome.context, wallet, chain, expiration, marketplaces)
        path = write_pending_listing(request, config.listing.pending_dir)
    except (ValidationError, KeyError, OSError) as e:
        click.echo(f"Confirmed listing kept in session '{name}'. Re-run to retry.", err=True)
        raise click.ClickException(f"Failed to write listing request: {e}") from e

    store.clear(name)
    _echo_created(request, path)


def _start_or_resume(store: FlowSessionStore, name: str, resume: bool, max_history_size: int) -> FlowStateManager:
    """Load a stored session when resuming, otherwise start a fresh flow."""
    try:
        if not resume:
            store.clear(name)
            return FlowStateManager(max_history_size=max_history_size)

        manager = store.load(name, max_history_size=max_history_size)
    except (FlowStateError, ValueError) as e:
        raise click.ClickException(
            f"Cannot resume session '{name}': {e}. Use --no-resume to start over."
        ) from e

    if manager is None:
        return FlowStateManager(max_history_size=max_history_size)
    if manager.is_flow_cancelled():
        store.clear(name)
        return FlowStateManager(max_history_size=max_history_size)
    if manager.is_flow_completed():
        click.echo(f"↩️  Session '{name}' holds a confirmed listing, writing it now")
        return manager

    click.echo(f"↩️  Resuming session '{name}' at step: {manager.get_current_state()}")
    return manager


def _list_direct(
    config,
    client: OpenSeaClient,
    wallet: str,
    chain: str,
    expiration: str,
    marketplaces: str,
    address: str,
    token_id: str,
    pricing: tuple[PricingMethod, str],
) -> None:
    method, value = pricing
    try:
        contract = validate_eth_address(address)
        token_id = validate_token_id(token_id)
        listing_price = calculate_listing_price(method, value, client, contract, token_id)
    except LISTING_ERRORS as e:
        raise click.ClickException(str(e)) from e

    context = {
        "contract": contract,
        "tokenId": token_id,
        "method": method.value,
        "pricingValue": value,
        "price": format(listing_price.price.normalize(), "f"),
        "pricingInfo": listing_price.info,
    }
    try:
        request = build_listing_request(context, wallet, chain, expiration, marketplaces)
        path = write_pending_listing(request, config.listing.pending_dir)
    except (ValidationError, OSError) as e:
        raise click.ClickException(f"Failed to write listing request: {e}") from e

    _echo_created(request, path)
