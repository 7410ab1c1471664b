#!/usr/bin/env python3
"""
Main CLI Entry Point for NFT Trader

Provides the command-line interface for the listing wizard and its sessions.
"""


import click

from ..core.config import get_config


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    NFT Trader - Marketplace Trading Assistant

    Interactive and direct-mode NFT listing with resumable wizard sessions.
    """
    ctx.ensure_object(dict)

    if config_env:
        import os

        os.environ["NFTTRADER_ENV"] = config_env

    if debug:
        import logging
        import os

        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("nfttrader").setLevel(logging.DEBUG)

    try:
        config_obj = get_config()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config_obj

    if verbose:
        click.echo(f"Environment: {config_obj.environment.value}")
        click.echo(f"Data directory: {config_obj.data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from nfttrader import __author__, __version__

    click.echo(f"NFT Trader v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Cache Directory: {config_obj.cache.cache_dir}")
    click.echo(f"  Session Directory: {config_obj.flow.session_dir}")
    click.echo(f"  Pending Listings: {config_obj.listing.pending_dir}")
    click.echo(f"  Default Chain: {config_obj.listing.default_chain}")
    click.echo(f"  OpenSea API Key: {'configured' if config_obj.opensea.api_key else 'not set'}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


from .cache import cache  # noqa: E402
from .listing import list_nft  # noqa: E402
from .session import session  # noqa: E402

main.add_command(cache)
main.add_command(list_nft)
main.add_command(session)


if __name__ == "__main__":
    main()
