#!/usr/bin/env python3
"""
Cache CLI - Refresh and Inspect Cached Wallet Holdings

The listing wizard reads holdings from the local cache only, so `cache refresh`
must run before the first `list` and whenever the cache expires.
"""

import click

from ..core.config import SUPPORTED_CHAINS, get_config
from ..core.errors import OpenSeaApiError, ValidationError
from ..listing.cache import NftCache
from ..listing.validators import validate_eth_address
from ..opensea.client import OpenSeaClient


def _cache() -> NftCache:
    config = get_config()
    return NftCache(config.cache.cache_dir, config.cache.expiry_hours)


def _wallet(wallet: str) -> str:
    try:
        return validate_eth_address(wallet)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="'--wallet'") from e


@click.group()
def cache() -> None:
    """Wallet holdings cache commands."""
    pass


@cache.command()
@click.option("--wallet", required=True, help="Wallet address to cache")
@click.option("--chain", type=click.Choice(SUPPORTED_CHAINS), help="Chain (default: DEFAULT_CHAIN)")
@click.pass_context
def refresh(ctx: click.Context, wallet: str, chain: str | None) -> None:
    """
    Fetch wallet holdings from OpenSea and rewrite the local cache.

    Examples:
      nfttrader cache refresh --wallet 0xabc...
      nfttrader cache refresh --wallet 0xabc... --chain ethereum
    """
    config = get_config()
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False
    chain = chain or config.listing.default_chain
    wallet = _wallet(wallet)

    client = OpenSeaClient(
        config.opensea.api_key,
        chain,
        base_url=config.opensea.base_url,
        timeout=config.opensea.timeout,
        retries=config.opensea.retries,
    )

    def on_page(page: int, page_count: int, total: int, has_more: bool) -> None:
        if verbose or has_more:
            click.echo(f"  Page {page}: {page_count} NFTs ({total} so far)")

    click.echo(f"🔄 Fetching NFTs for {wallet} on {chain}...")
    try:
        nfts = client.get_wallet_nfts(wallet, on_page=on_page)
    except OpenSeaApiError as e:
        raise click.ClickException(f"Failed to fetch NFTs: {e}") from e

    nft_cache = _cache()
    try:
        cache_data = nft_cache.save_cache(wallet, chain, nfts)
    except OSError as e:
        raise click.ClickException(f"Failed to write cache: {e}") from e

    metadata = cache_data["metadata"]
    click.echo(f"✅ Cached {metadata['count']} NFTs")
    if metadata["filteredCount"]:
        click.echo(f"  Filtered {metadata['filteredCount']} NFTs from ignored collections")
    click.echo(f"  Saved to: {nft_cache.cache_file_path(wallet, chain)}")


@cache.command()
@click.option("--wallet", required=True, help="Wallet address")
@click.option("--chain", type=click.Choice(SUPPORTED_CHAINS), help="Chain (default: DEFAULT_CHAIN)")
def status(wallet: str, chain: str | None) -> None:
    """Show when a wallet's cache was last refreshed."""
    chain = chain or get_config().listing.default_chain
    wallet = _wallet(wallet)

    info = _cache().cache_status(wallet, chain)
    if not info.exists:
        click.echo(f"No cache for {wallet} on {chain}. Run 'nfttrader cache refresh'.")
        return

    click.echo(f"Wallet: {info.wallet_address}")
    click.echo(f"Chain: {info.chain}")
    click.echo(f"NFTs: {info.count} (filtered {info.filtered_count})")
    click.echo(f"Last updated: {info.last_updated:%Y-%m-%d %H:%M:%S}")
    click.echo(f"Status: {'expired' if info.expired else 'valid'}")


@cache.command()
@click.option("--wallet", help="Wallet address (omit with --all)")
@click.option("--chain", type=click.Choice(SUPPORTED_CHAINS), help="Chain (default: DEFAULT_CHAIN)")
@click.option("--all", "clear_all", is_flag=True, help="Clear every cached wallet")
def clear(wallet: str | None, chain: str | None, clear_all: bool) -> None:
    """Delete cached holdings."""
    nft_cache = _cache()
    if clear_all:
        click.echo(f"Cleared {nft_cache.clear_all_caches()} cache files")
        return
    if not wallet:
        raise click.UsageError("Specify --wallet or --all")

    chain = chain or get_config().listing.default_chain
    wallet = _wallet(wallet)
    if nft_cache.clear_cache(wallet, chain):
        click.echo(f"Cleared cache for {wallet} on {chain}")
    else:
        click.echo(f"No cache for {wallet} on {chain}")
