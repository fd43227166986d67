# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/antlogistics/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to antlogistics (PowerShell: $env:FLASK_APP="antlogistics").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Operator accounts:
# - python -m flask operators create --username admin --full-name "Site Admin" --password "Password123!" --role admin
#   Create an operator (prompts if options are omitted).
# - python -m flask operators list [--all]
#   List operators with role and active status.
#
# Maintenance:
# - python -m flask sessions cleanup --older-than-days 30
#   Delete expired or revoked sessions issued before the retention window.

import click
from datetime import timedelta
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import OperatorRole
from .services.operator_service import DEFAULT_IDLE_TIMEOUT_MINUTES, OperatorService
from .services.session_service import SessionService, SessionSettings
from .validation import DomainError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables. Existing tables and data are left alone."""
    db.create_all()
    click.echo("PASS Database schema is up to date.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask operators create' to add an admin.")


@click.group('operators')
def operators_group():
    """Operator account management."""


@operators_group.command('create')
@click.option('--username', prompt=True, help='Username (stored lower case)')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option(
    '--role',
    type=click.Choice([r.value for r in OperatorRole]),
    default=OperatorRole.OPERATOR.value,
    show_default=True,
)
@click.option('--idle-timeout', type=int, default=DEFAULT_IDLE_TIMEOUT_MINUTES, show_default=True,
              help='Idle timeout in minutes (5-180)')
@with_appcontext
def create_operator_cli(username, full_name, password, role, idle_timeout):
    """Create an operator account. Password is hashed with bcrypt."""
    service = OperatorService(db.session, bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"])
    try:
        operator = service.create_operator(
            username=username,
            password=password,
            full_name=full_name,
            role=role,
            idle_timeout_minutes=idle_timeout,
        )
    except DomainError as e:
        click.echo(f"FAIL Failed to create operator: {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created operator: {operator.username} with role '{operator.role.value}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@operators_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated operators')
@with_appcontext
def list_operators_cli(include_inactive):
    """List operators with role and active status."""
    operators = OperatorService(db.session).list_operators(include_inactive=include_inactive)
    if not operators:
        click.echo("No operators found.")
        return

    for operator in operators:
        status = "active" if operator.is_active else "inactive"
        click.echo(
            f"{operator.username:<20} {operator.full_name:<30} "
            f"{operator.role.value:<10} {status}"
        )


@click.group('sessions')
def sessions_group():
    """Session maintenance."""


@sessions_group.command('cleanup')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """
    Delete expired or revoked sessions.

    Only sessions issued before the retention window are removed.
    """
    service = SessionService(db.session, SessionSettings.from_config(current_app.config))
    deleted = service.cleanup_expired_sessions(older_than=timedelta(days=older_than_days))
    click.echo(f"Deleted {deleted} sessions older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(operators_group)
    app.cli.add_command(sessions_group)
