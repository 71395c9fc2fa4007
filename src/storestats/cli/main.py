import asyncio
import datetime
import json
import logging
from typing import Optional

import typer
from tortoise import Tortoise
from tortoise.exceptions import IntegrityError

from ..core.config import DEFAULT_REPORT_LIMIT
from ..features.auth import service as auth_service
from ..features.auth.security import get_password_hash
from ..features.reports import InvalidDateRangeError, ReportCache, ReportService
from ..features.reports.service import REPORT_QUERIES
from ..main import TORTOISE_ORM_CONFIG

logger = logging.getLogger(__name__)

app = typer.Typer(name="storestats-cli", help="CLI for managing Store Stats data.")


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


# User management commands
user_app = typer.Typer(name="users", help="Manage user accounts.")
app.add_typer(user_app)

@user_app.command("create-admin")
def create_admin_user_command(
    username: str = typer.Option(..., prompt=True, help="Username for the new admin."),
    email: str = typer.Option(..., prompt=True, help="Email for the new admin."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new admin.")
):
    """Creates a new admin user."""
    asyncio.run(_create_admin_user(username, email, password))

async def _create_admin_user(username: str, email: str, password: str):
    async with DBConnection():
        typer.echo(f"Attempting to create admin user: {username} ({email})...")
        if await auth_service.get_user_by_username(username):
            typer.secho(f"Error: User with username '{username}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if await auth_service.get_user_by_email(email):
            typer.secho(f"Error: User with email '{email}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        try:
            admin_user = await auth_service.create_user(
                {"username": username, "email": email},
                hashed_password_val=get_password_hash(password),
                role="admin",
            )
        except IntegrityError as e:
            typer.secho(f"Error creating admin user: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(f"Admin user '{admin_user.username}' created successfully with ID: {admin_user.public_id}", fg=typer.colors.GREEN)

@user_app.command("grant-manager")
def grant_manager_command(
    username: str = typer.Argument(..., help="The username of the user to make a shop manager.")
):
    """Gives an existing user the shop_manager role, which can view reports."""
    asyncio.run(_grant_manager(username))

async def _grant_manager(username: str):
    async with DBConnection():
        user = await auth_service.get_user_by_username(username)
        if not user:
            typer.secho(f"Error: User with username '{username}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if user.can_manage_store:
            typer.secho(f"User '{username}' can already manage the store ({user.role}).", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)
        if not user.is_active:
            typer.secho(f"Error: User '{username}' is currently inactive.", fg=typer.colors.RED)
            raise typer.Exit(code=1)

        await auth_service.set_user_role(user, "shop_manager")
        typer.secho(f"User '{username}' is now a shop manager.", fg=typer.colors.GREEN)


# Report commands
report_app = typer.Typer(name="reports", help="Compute analytics reports.")
app.add_typer(report_app)

@report_app.command("show")
def show_report_command(
    report: str = typer.Argument(..., help=f"One of: {', '.join(REPORT_QUERIES)}"),
    from_date: Optional[datetime.datetime] = typer.Option(None, "--from", formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD)."),
    to_date: Optional[datetime.datetime] = typer.Option(None, "--to", formats=["%Y-%m-%d"], help="Last day, inclusive (YYYY-MM-DD)."),
    all_time: bool = typer.Option(False, "--all-time", help="Report over every order."),
    limit: int = typer.Option(DEFAULT_REPORT_LIMIT, min=1, max=100, help="Row limit for ranked reports."),
    interval: str = typer.Option("day", help="Revenue trend bucket: day, week or month."),
):
    """Computes a report against the configured database and prints it as JSON."""
    if report not in REPORT_QUERIES:
        typer.secho(f"Error: unknown report '{report}'. Choose one of: {', '.join(REPORT_QUERIES)}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if interval not in ("day", "week", "month"):
        typer.secho(f"Error: unknown interval '{interval}'.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    params = {}
    if report in ("top_products", "top_customers", "best_sales_days"):
        params["limit"] = limit
    elif report == "revenue_trend":
        params["interval"] = interval

    payload = asyncio.run(_show_report(
        report,
        from_date.date() if from_date else None,
        to_date.date() if to_date else None,
        all_time,
        params,
    ))
    typer.echo(json.dumps(payload, indent=2))

async def _show_report(report: str, start_date, end_date, all_time: bool, params: dict):
    async with DBConnection():
        service = ReportService(cache=ReportCache())
        try:
            return await service.get_report(
                report, start_date=start_date, end_date=end_date, all_time=all_time, **params
            )
        except InvalidDateRangeError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
