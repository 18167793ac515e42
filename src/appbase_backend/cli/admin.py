import click

from appbase_backend.cli.utils import db_session
from appbase_backend.permissions.catalog import bootstrap_admin_user

@click.command()
@click.option("--email", "-e", "email", prompt=True)
@click.option("--password", "-p", "password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(email, password):
    """Create an administrator holding the admin role."""

    with db_session() as db:
        admin = bootstrap_admin_user(db, email, password)

        if admin is None:
            click.echo(f"User {email} already exists, nothing to do")
        else:
            click.echo(f"Created admin {admin.email} ({admin.id})")

@click.group()
def admin():
    pass

admin.add_command(create_admin, "create")
