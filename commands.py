import click
from dropbox import DropboxOAuth2FlowNoRedirect

from classes.account_manager import AccountManager
from models import db
from utils.errors import ConflictError


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables directly, without migrations."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.option("--email", prompt=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--first-name", default="Admin")
    @click.option("--last-name", default="User")
    def create_admin(email, password, first_name, last_name):
        """Create an administrator, or promote an existing account."""
        account = AccountManager.get_account_by_email(email)
        if account is None:
            try:
                AccountManager.register(email, password, first_name, last_name, role="admin")
            except ConflictError as e:
                raise click.ClickException(e.message)
            click.echo(f"Admin {email} created.")
            return

        profile = AccountManager.ensure_profile(account)
        profile.role = "admin"
        db.session.commit()
        click.echo(f"{email} promoted to admin.")

    @app.cli.command("dropbox-token")
    def dropbox_token():
        """Walk through the Dropbox OAuth flow and print a refresh token for DROPBOX_REFRESH_TOKEN."""
        app_key = app.config.get("DROPBOX_APP_KEY")
        app_secret = app.config.get("DROPBOX_APP_SECRET")
        if not app_key or not app_secret:
            raise click.ClickException("DROPBOX_APP_KEY and DROPBOX_APP_SECRET must be set")

        flow = DropboxOAuth2FlowNoRedirect(app_key, app_secret, token_access_type="offline")
        click.echo(f"1. Open {flow.start()}")
        click.echo("2. Allow access and copy the authorization code.")
        code = click.prompt("Authorization code").strip()

        try:
            result = flow.finish(code)
        except Exception as e:
            raise click.ClickException(f"Dropbox rejected the code: {e}")
        click.echo(f"DROPBOX_REFRESH_TOKEN={result.refresh_token}")
