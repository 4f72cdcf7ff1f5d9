"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask hash-passphrase: Hash the admin passphrase for ADMIN_PASSPHRASE_HASH
"""

import click
from werkzeug.security import generate_password_hash

from salonpos.database import create_tables


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the salon tables (customer, staff, service, sale)."""
        try:
            create_tables()
            click.echo(click.style('Tables created.', fg='green', bold=True))
        except Exception as e:
            click.echo(click.style(f'Error creating tables: {str(e)}', fg='red'))
            raise SystemExit(1)

    @app.cli.command('hash-passphrase')
    @click.option('--passphrase', prompt=True, hide_input=True, confirmation_prompt=True,
                  help='Admin passphrase required to delete sales')
    def hash_passphrase(passphrase):
        """Print the hash to store in ADMIN_PASSPHRASE_HASH."""
        if len(passphrase) < 4:
            click.echo(click.style('The passphrase must have at least 4 characters.', fg='red'))
            return

        click.echo(generate_password_hash(passphrase, method='scrypt'))
        click.echo('\nSet it in your environment:')
        click.echo('   ADMIN_PASSPHRASE_HASH=<hash above>')
