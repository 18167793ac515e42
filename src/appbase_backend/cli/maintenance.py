import click

from appbase_backend.auth.sessions import clean_expired_sessions
from appbase_backend.cli.utils import db_session
from appbase_backend.database import get_engine
from appbase_backend.model import Base
from appbase_backend.permissions.catalog import ensure_admin_role, sync_permission_catalog
from appbase_backend.permissions.queries import db_get_all_permissions, db_get_permissions_by_module

@click.command()
def init_db():
    """Create tables, sync the permission catalog and the admin role."""

    Base.metadata.create_all(bind=get_engine())

    with db_session() as db:
        inserted = sync_permission_catalog(db)
        role = ensure_admin_role(db)
        click.echo(f"Database ready: {inserted} new permission(s), admin role '{role.name}'")

@click.command()
def cleanup_sessions():
    """Delete sessions whose expiry has passed."""

    with db_session() as db:
        removed = clean_expired_sessions(db)

    click.echo(f"Removed {removed} expired session(s)")

@click.command()
@click.option("--module", "-m", "module", default=None, help="Only list one module")
def list_permissions(module):

    with db_session() as db:
        if module:
            permissions = db_get_permissions_by_module(module, db)
        else:
            permissions = db_get_all_permissions(db)

        for permission in permissions:
            click.echo(f"{permission.id:<28} {permission.description or ''}")

@click.group()
def sessions():
    pass

sessions.add_command(cleanup_sessions, "cleanup")

@click.group()
def permissions():
    pass

permissions.add_command(list_permissions, "list")
