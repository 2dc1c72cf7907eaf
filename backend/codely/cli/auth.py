"""Flask CLI commands for schema bootstrap and session revocation."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from codely.core.extensions import db, get_session_service

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Identity and session maintenance commands."""


@auth_cli.command("init-db")
@with_appcontext
def init_db() -> None:
    """Create the ``users`` and ``refresh_tokens`` tables if missing."""
    db.create_all()
    LOGGER.info("auth.init_db")
    click.echo("Database tables created.")


@auth_cli.command("revoke-sessions")
@click.argument("email")
@with_appcontext
def revoke_sessions(email: str) -> None:
    """Revoke every refresh token of the account registered as EMAIL."""
    revoked = get_session_service().revoke_all_sessions(email.strip())
    click.echo(f"Revoked {revoked} refresh token(s) for {email.strip()}.")
