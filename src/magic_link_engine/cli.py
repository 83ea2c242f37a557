import asyncio
import subprocess
import sys
from pathlib import Path

import typer
import uvicorn

from magic_link_engine.core.exceptions import MagicLinkDisabledError
from magic_link_engine.core.postgres import AsyncSessionLocal
from magic_link_engine.repositories.client_repo import ClientRepository
from magic_link_engine.repositories.user_repo import UserRepository
from magic_link_engine.services.link_builder import MagicLinkBuilder
from magic_link_engine.tokens.codec import CredentialCodec

app = typer.Typer(help="MagicLinkEngine CLI")


@app.command()
def run(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server
    """
    uvicorn.run(
        "magic_link_engine.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def migrate() -> None:
    """
    Run Alembic migrations
    """
    alembic_path = str(Path(sys.executable).parent / "alembic")
    subprocess.run([alembic_path, "upgrade", "head"], check=True)


@app.command()
def makemigration(message: str) -> None:
    """
    Create a new migration
    """
    alembic_path = str(Path(sys.executable).parent / "alembic")
    subprocess.run([alembic_path, "revision", "--autogenerate", "-m", message], check=True)


async def _issue_link(
    email: str,
    client_id: str,
    redirect_uri: str | None,
    scope: str | None,
    ttl: int | None,
) -> str:
    builder = MagicLinkBuilder(CredentialCodec())
    if not builder.enabled:
        raise MagicLinkDisabledError()

    async with AsyncSessionLocal() as session:
        user = await UserRepository(session).get_by_email(email)
        if user is None:
            raise typer.BadParameter(f"No user with email {email}")
        client = await ClientRepository(session).get_by_client_id(client_id)
        if client is None:
            raise typer.BadParameter(f"No enabled client {client_id}")

    context = builder.codec.issue(
        user.id, client.client_id, redirect_uri=redirect_uri, scope=scope, ttl_seconds=ttl
    )
    return builder.build_link(context)


@app.command("issue-link")
def issue_link(
    email: str,
    client_id: str,
    redirect_uri: str | None = None,
    scope: str | None = "openid",
    ttl: int | None = None,
) -> None:
    """
    Print a one-time magic link for a user (support / debugging)
    """
    try:
        link = asyncio.run(_issue_link(email, client_id, redirect_uri, scope, ttl))
    except MagicLinkDisabledError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(link)


if __name__ == "__main__":
    app()
