from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from plan_catalog.app.core.logging import setup_logging
from plan_catalog.app.settings import get_app_settings
from plan_catalog.auth.passwords import PasswordValidationError, validate_password
from plan_catalog.auth.repository import AdminExistsError, AdminRepository
from plan_catalog.db.client import MongoDatabase
from plan_catalog.db.indexes import ensure_indexes
from plan_catalog.db.settings import get_mongo_settings
from plan_catalog.plans.files import PlanFileStore
from plan_catalog.plans.migration import FileHealth, relink, scan
from plan_catalog.plans.repository import PlanRepository

app = typer.Typer(no_args_is_help=True, add_completion=False, help="Plan catalog operations.")
admin_app = typer.Typer(no_args_is_help=True, add_completion=False)
db_app = typer.Typer(no_args_is_help=True, add_completion=False)
files_app = typer.Typer(no_args_is_help=True, add_completion=False)

app.add_typer(admin_app, name="admin", help="Manage admin accounts.")
app.add_typer(db_app, name="db", help="Database maintenance.")
app.add_typer(files_app, name="files", help="Inspect and relink stored plan files.")


def open_database() -> MongoDatabase:
    return MongoDatabase.from_settings(get_mongo_settings())


def open_file_store() -> PlanFileStore:
    settings = get_app_settings()
    return PlanFileStore(settings.upload_dir, max_bytes=settings.max_upload_bytes)


@app.callback()
def _main(log_level: Optional[str] = typer.Option(None, help="Override LOG_LEVEL for this run")):
    setup_logging(level=log_level)


@app.command("serve")
def serve(
        host: str = typer.Option("0.0.0.0", help="Bind address"),
        port: int = typer.Option(5000, help="Bind port"),
        reload: bool = typer.Option(False, help="Reload on code changes (dev only)"),
):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("plan_catalog.main:app_factory", factory=True, host=host, port=port, reload=reload)


@admin_app.command("create")
def create_admin(
        email: str = typer.Option(..., help="Admin email (login name)"),
        password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
        skip_policy: bool = typer.Option(False, help="Do not enforce the password policy"),
):
    """Create an admin account with a bcrypt-hashed password."""
    if not skip_policy:
        try:
            validate_password(password)
        except PasswordValidationError as exc:
            typer.echo(f"Password rejected: {', '.join(exc.reasons)}", err=True)
            raise typer.Exit(code=1)

    async def _run():
        mongo = open_database()
        try:
            return await AdminRepository(mongo.admins).create(email, password)
        finally:
            mongo.close()

    try:
        admin = asyncio.run(_run())
    except AdminExistsError:
        typer.echo(f"Admin {email} already exists", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Created admin {admin.email} ({admin.id})")


@db_app.command("ensure-indexes")
def ensure_db_indexes():
    """Create the plan, admin and download receipt indexes."""

    async def _run():
        mongo = open_database()
        try:
            return await ensure_indexes(
                mongo, receipt_ttl_seconds=get_app_settings().download_receipt_ttl_seconds
            )
        finally:
            mongo.close()

    for name in asyncio.run(_run()):
        typer.echo(f"ok {name}")


@files_app.command("scan")
def scan_files(as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON")):
    """Classify every plan's file as healthy, recoverable or problematic."""

    async def _run():
        mongo = open_database()
        try:
            return await scan(PlanRepository(mongo.plans), open_file_store())
        finally:
            mongo.close()

    report = asyncio.run(_run())
    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))
        return
    typer.echo(
        f"total={report.total_plans} healthy={report.healthy} "
        f"recoverable={report.recoverable} problematic={report.problematic}"
    )
    for item in report.details:
        if item.status is not FileHealth.HEALTHY:
            typer.echo(f"{item.status.value:<12} {item.plan_id} {item.file_path or '-'}")


@files_app.command("relink")
def relink_files(
        plan_id: Optional[list[str]] = typer.Option(None, "--plan-id", help="Plan to relink (repeatable)"),
        all_recoverable: bool = typer.Option(False, "--all", help="Relink every recoverable plan"),
):
    """Point recoverable plans at their copy under the upload root."""
    if not plan_id and not all_recoverable:
        typer.echo("Pass --plan-id or --all", err=True)
        raise typer.Exit(code=2)

    async def _run():
        mongo = open_database()
        files = open_file_store()
        repo = PlanRepository(mongo.plans)
        try:
            ids = list(plan_id or [])
            if all_recoverable:
                found = await scan(repo, files)
                ids += [d.plan_id for d in found.details if d.status is FileHealth.RECOVERABLE]
            return await relink(repo, files, dict.fromkeys(ids))
        finally:
            mongo.close()

    report = asyncio.run(_run())
    for detail in report.details:
        typer.echo(f"{'ok' if detail.success else 'FAIL':<4} {detail.plan_id} {detail.message}")
    typer.echo(f"processed={report.total_processed} successful={report.successful} failed={report.failed}")
    if report.failed:
        raise typer.Exit(code=1)
