"""
Flask CLI commands.

Commands:
- flask init-db: Create database tables
- flask create-user: Create a cashier or admin user
- flask check-stock: Reconcile stock levels against the movement log
"""

import click
import re
import sys
from app.database import get_session, create_tables
from app.models import AppUser
from app.services import stock_service


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        create_tables()
        click.echo(click.style('✅ Database tables created.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--full-name', default='', help='Display name')
    @click.option('--role', type=click.Choice(['admin', 'cashier']), default='cashier', show_default=True)
    def create_user(email, password, full_name, role):
        """Create a new user who can record sales."""
        db_session = get_session()
        email = email.strip().lower()

        # Validate email format
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            click.echo(click.style('❌ Invalid email. Use the format user@example.com', fg='red'))
            sys.exit(1)

        # Validate password length
        if len(password) < 6:
            click.echo(click.style('❌ Password must be at least 6 characters.', fg='red'))
            sys.exit(1)

        if db_session.query(AppUser).filter_by(email=email).first():
            click.echo(click.style(f'❌ A user with email {email} already exists', fg='red'))
            sys.exit(1)

        try:
            user = AppUser(email=email, full_name=full_name or None, role=role, active=True)
            user.set_password(password)

            db_session.add(user)
            db_session.commit()

            click.echo(click.style('\n✅ User created!', fg='green', bold=True))
            click.echo(f'   Email: {email}')
            click.echo(f'   Role: {role}')
            click.echo(f'   ID: {user.id}')

        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error creating user: {str(e)}', fg='red'))
            sys.exit(1)

    @app.cli.command('check-stock')
    @click.option('--product-id', type=int, default=None, help='Only check this product')
    def check_stock(product_id):
        """Verify every stock row against its movement history."""
        mismatches = stock_service.reconcile(get_session(), product_id=product_id)
        if not mismatches:
            click.echo(click.style('✅ Stock ledger matches the movement log.', fg='green'))
            return

        click.echo(click.style(f'❌ {len(mismatches)} product(s) out of balance:', fg='red', bold=True))
        for row in mismatches:
            click.echo(
                f"   product {row['product_id']}: current={row['current_stock']} "
                f"movements={row['expected_from_movements']} "
                f"in={row['stock_in']} out={row['stock_out']}"
            )
        sys.exit(1)
