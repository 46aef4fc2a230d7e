# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/walkwallet/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with balance and streak.
# - python -m flask users create --email walker@example.com --password "Password123!" [--first-name Asha --last-name Rao]
#   Create a user (prompts if options are omitted).
#
# Ledger:
# - python -m flask ledger verify [--user-id <id>]
#   Compare each balance with the sum of its transactions. Exits 1 on mismatch.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user, PasswordValidationError
from .services import ledger_service
from walkwallet.errors import NotFoundError
from walkwallet.money import money_str
from walkwallet.validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', default=None, help='First name')
@click.option('--last-name', default=None, help='Last name')
@with_appcontext
def create_user_cli(email, password, first_name, last_name):
    """
    Create a new walker account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        raise SystemExit(1)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email}")
    click.echo(f"     User ID: {user.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with balance and streak."""
    users = db.session.query(User).order_by(User.created_at).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Email':<30} {'Active':<8} {'Balance':>10} {'Streak':>7}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(
            f"{user.id:<38} {user.email:<30} {active_str:<8} "
            f"{money_str(user.balance):>10} {user.daily_streak:>7}"
        )


@click.group('ledger')
def ledger_group():
    """Ledger consistency checks."""


@ledger_group.command('verify')
@click.option('--user-id', default=None, help='Check a single user')
@with_appcontext
def verify_ledger(user_id):
    """
    Verify every balance equals the sum of that user's transactions.

    Exits with status 1 if any user is out of balance.
    """
    if user_id:
        try:
            results = [ledger_service.verify_user_ledger(user_id)]
        except NotFoundError as e:
            click.echo(f"FAIL {str(e)}")
            raise SystemExit(1)
    else:
        results = ledger_service.verify_all_ledgers()

    mismatches = 0
    for row in results:
        status = "PASS" if row["ok"] else "FAIL"
        if not row["ok"]:
            mismatches += 1
        click.echo(
            f"{status} {row['email']}: balance={money_str(row['balance'])} "
            f"ledger={money_str(row['ledger_total'])}"
        )

    click.echo(f"Checked {len(results)} user(s), {mismatches} mismatch(es)")
    if mismatches:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(ledger_group)
