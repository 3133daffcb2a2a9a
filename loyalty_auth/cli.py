# loyalty_auth/cli.py

import click
from flask import Flask

from loyalty_auth.api.container import get_container
from loyalty_auth.core.exceptions import ConfigurationError


def register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Create the users and auth_tokens tables."""
        database = get_container().database
        if database is None:
            raise click.ClickException("DATABASE_URL is not configured")
        database.create_all()
        click.echo("Tables created")

    @app.cli.command("revoke-user-tokens")
    @click.argument("user_id", type=int)
    def revoke_user_tokens(user_id: int):
        """Revoke every live token issued to USER_ID."""
        container = get_container()
        try:
            with container.db_session() as session:
                revoked = container.revocation(session).revoke_all_for_user(user_id)
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e
        click.echo(f"Revoked {revoked} token record(s) for user {user_id}")
