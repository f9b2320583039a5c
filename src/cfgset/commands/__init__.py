"""Subcommand modules for cfgset.

Provides register_commands() which uses deferred imports to keep
``cfgset --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group."""
    from cfgset.commands.create_setter import create_setter

    cli.add_command(create_setter)
