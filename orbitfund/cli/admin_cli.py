# orbitfund/cli/admin_cli.py
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import Session as SQLModelSession

from orbitfund.core import auth
from orbitfund.db import create_db_and_tables, get_engine

app_cli = typer.Typer(help="OrbitFund administration command line interface.")
console = Console()


@app_cli.command()
def init_db():
    """Creates the database tables if they don't exist yet."""
    create_db_and_tables(get_engine())
    console.print("[green]Database and tables checked/created.[/green]")


def _set_admin(email: str, granted: bool) -> None:
    with SQLModelSession(get_engine()) as session:
        user_in_db = auth.set_admin_grant(session, email, granted)
    if user_in_db is None:
        console.print(f"[bold red]No user with email '{email}'.[/bold red]")
        raise typer.Exit(code=1)
    action = "granted to" if granted else "revoked from"
    console.print(f"[green]Admin rights {action} [yellow]{user_in_db.username}[/yellow] ({email}).[/green]")


@app_cli.command()
def grant_admin(
    email: Annotated[str, typer.Argument(help="Email of the user to promote.")],
):
    """
    Grants the Admin role. Takes effect on the user's next login; verifyAdmin
    reflects it immediately.
    """
    _set_admin(email, granted=True)


@app_cli.command()
def revoke_admin(
    email: Annotated[str, typer.Argument(help="Email of the user to demote.")],
):
    """Revokes the Admin role."""
    _set_admin(email, granted=False)


@app_cli.command()
def list_users():
    """Lists all registered users and their admin grant."""
    with SQLModelSession(get_engine()) as session:
        users = auth.list_all_users_from_db(session)

    if not users:
        console.print("[yellow]No users registered.[/yellow]")
        return

    table = Table(title="OrbitFund Users")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Username")
    table.add_column("Email")
    table.add_column("Admin since", style="magenta")
    for user in users:
        granted = user.admin_granted_at.isoformat() if user.admin_granted_at else "-"
        table.add_row(str(user.id), user.username, user.email, granted)
    console.print(table)


if __name__ == "__main__":
    app_cli()
