"""
Menu Ops CLI.

Command-line interface for schema setup, permission catalog sync and
permission diagnostics.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="menu-ops",
    help="Menu Ops administration CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create all tables for the configured database."""
    from sqlalchemy.exc import SQLAlchemyError

    from menu_api.models import Base
    from shared.infrastructure.db import engine

    console.print(f"[blue]Creating tables on: {engine.url.render_as_string(hide_password=True)}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Schema creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ {len(Base.metadata.tables)} tables created/verified[/green]")


# =============================================================================
# Permission Commands
# =============================================================================

@app.command()
def sync_permissions():
    """Mirror the in-code permission catalog into the database."""
    from sqlalchemy.exc import SQLAlchemyError

    from menu_api.services.permissions.sync import sync_permission_catalog
    from shared.infrastructure.db import get_db_context

    try:
        with get_db_context() as db:
            report = sync_permission_catalog(db)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Sync failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Permission Sync")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Permissions created", str(report.permissions_created))
    table.add_row("Permissions updated", str(report.permissions_updated))
    table.add_row("Roles created", str(report.roles_created))
    table.add_row("Roles updated", str(report.roles_updated))
    for slug, count in report.role_grants.items():
        table.add_row(f"Grants: {slug}", str(count))
    console.print(table)

    if report.orphaned_keys:
        console.print(
            f"[yellow]Orphaned keys kept in the database: {', '.join(report.orphaned_keys)}[/yellow]"
        )
    console.print("[green]✓ Permission catalog synced[/green]")


@app.command()
def list_roles():
    """Show the role hierarchy and default grant counts."""
    from menu_api.services.permissions import ROLE_DEFINITIONS, assignable_roles

    table = Table(title="Roles")
    table.add_column("Level", style="yellow", justify="right")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Grants", justify="right")
    table.add_column("Can assign", style="green")

    for role in sorted(ROLE_DEFINITIONS, key=lambda r: r.level, reverse=True):
        slug = f"{role.slug} (default)" if role.is_default else role.slug
        table.add_row(
            str(role.level),
            slug,
            role.name,
            str(len(role.grants)),
            ", ".join(r.slug for r in assignable_roles(role.slug)) or "-",
        )
    console.print(table)


@app.command()
def check_user(
    user_id: int = typer.Option(..., "--user-id", "-u", help="User to inspect"),
    permission: str = typer.Option(None, "--permission", "-p", help="Only check this key"),
):
    """Show the effective permissions of a user, as the API would resolve them."""
    from menu_api.models import User
    from menu_api.services.permissions import AuthorizationGuard, PermissionKey, can
    from shared.infrastructure.db import get_db_context

    with get_db_context() as db:
        user = db.get(User, user_id)
        if user is None:
            console.print(f"[red]✗ User {user_id} not found[/red]")
            raise typer.Exit(1)

        guard = AuthorizationGuard(db, {"sub": user.id, "tenant_id": user.tenant_id})
        principal = guard.get_auth_user()
        if principal is None:
            console.print(f"[red]✗ User {user_id} is inactive and cannot authenticate[/red]")
            raise typer.Exit(1)

    console.print(
        f"[blue]{principal.email}[/blue] role=[cyan]{principal.role}[/cyan] "
        f"tenant={principal.tenant_id} override={'yes' if principal.permissions is not None else 'no'}"
    )

    if permission:
        allowed = can(principal, permission)
        mark = "[green]✓ allowed[/green]" if allowed else "[red]✗ denied[/red]"
        console.print(f"{permission}: {mark}")
        raise typer.Exit(0 if allowed else 2)

    table = Table(title="Effective permissions")
    table.add_column("Key", style="cyan")
    table.add_column("Allowed")
    for key in PermissionKey:
        table.add_row(key.value, "✓" if can(principal, key) else "")
    console.print(table)


@app.command()
def issue_token(
    user_id: int = typer.Option(..., "--user-id", "-u", help="User to sign a session for"),
):
    """Sign a session token for local testing. Refused in production."""
    from menu_api.models import User
    from shared.config.settings import settings
    from shared.infrastructure.db import get_db_context
    from shared.security.auth import sign_session_token

    if settings.environment == "production":
        console.print("[red]Cannot issue tokens from the CLI in production[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        user = db.get(User, user_id)
        if user is None:
            console.print(f"[red]✗ User {user_id} not found[/red]")
            raise typer.Exit(1)
        token = sign_session_token(user.id, user.tenant_id, user.email)

    console.print(token)


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    url: str = typer.Option("http://localhost:8000/api/health/detailed", help="Health endpoint"),
):
    """Check API health."""
    import time

    import httpx

    table = Table(title="Service Health")
    table.add_column("Service", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    try:
        start = time.time()
        response = httpx.get(url, timeout=5.0)
        elapsed = (time.time() - start) * 1000
    except httpx.HTTPError as e:
        table.add_row("Menu API", f"✗ {type(e).__name__}", "-")
        console.print(table)
        raise typer.Exit(1)

    if response.status_code == 200:
        table.add_row("Menu API", "✓ Healthy", f"{elapsed:.0f}ms")
    else:
        table.add_row("Menu API", f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
    for name, check in response.json().get("dependencies", {}).items():
        table.add_row(name, check.get("status", "?"), "-")
    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Menu Ops Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "0.1.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
