import click

from appbase_backend.settings import settings
from appbase_backend.utils import configure_logging
from .admin import admin
from .maintenance import init_db, permissions, sessions

@click.group()
def cli():
    configure_logging(settings.LOG_LEVEL)

cli.add_command(init_db, "init-db")
cli.add_command(admin, "admin")
cli.add_command(sessions, "sessions")
cli.add_command(permissions, "permissions")

if __name__ == '__main__':
    cli()
