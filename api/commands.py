"""
Flask CLI commands:
- flask --app api add-user <login> <password>
- flask --app api purge-sessions
"""
import click

from models import storage
from models.session_store import RefreshSessionStore
from models.user import User
from utils.security import hash_password, utcnow


def register_commands(app):
    @app.cli.command("add-user")
    @click.argument("login")
    @click.argument("password")
    def add_user(login, password):
        """Create an account with an argon2 password hash."""
        session = storage.get_session()
        if session.query(User).filter(User.login == login).first():
            raise click.ClickException(f"User {login} already exists")
        User(login=login, password_hash=hash_password(password)).save()
        click.echo(f"User {login} created")

    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete refresh sessions past their expiry."""
        removed = RefreshSessionStore(storage).purge_expired(utcnow())
        click.echo(f"Removed {removed} expired session(s)")
