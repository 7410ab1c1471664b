#!/usr/bin/env python3
"""
Session CLI - Inspect and Clear Saved Wizard Sessions
"""

import click

from ..core.config import get_config
from ..core.errors import InvalidSerializationDataError
from ..core.json_utils import format_json
from ..core.session_store import FlowSessionStore


def _store() -> FlowSessionStore:
    return FlowSessionStore(get_config().flow.session_dir)


@click.group()
def session() -> None:
    """Saved wizard session commands."""
    pass


@session.command("list")
def list_sessions() -> None:
    """List saved sessions."""
    store = _store()
    names = store.list_sessions()
    if not names:
        click.echo("No saved sessions.")
        return

    for name in names:
        try:
            click.echo(store.summary_text(name))
        except InvalidSerializationDataError:
            click.echo(f"{name}: corrupt session file")


@session.command()
@click.argument("name")
def show(name: str) -> None:
    """Show the stored state of a session."""
    store = _store()
    try:
        data = store.load_raw(name)
    except (InvalidSerializationDataError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if data is None:
        raise click.ClickException(f"No session named {name}")
    click.echo(format_json(data))


@session.command()
@click.argument("name")
def clear(name: str) -> None:
    """Delete a saved session."""
    try:
        removed = _store().clear(name)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if removed:
        click.echo(f"Cleared session {name}")
    else:
        click.echo(f"No session named {name}")
