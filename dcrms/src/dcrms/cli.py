"""
Command-line interface for dcrms.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from dcrms import __version__
from dcrms.actions import ACTIONS, Context, dispatch
from dcrms.backends.dcrdata import DcrdataClient
from dcrms.backends.dcrwallet import DcrwalletClient
from dcrms.config import Settings, load_settings
from dcrms.errors import DcrmsError

app = typer.Typer(
    name="dcrms",
    help="Decred multisig transaction tool",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def build_context(settings: Settings) -> Context:
    """Create the wallet and explorer clients for one invocation."""
    wallet = DcrwalletClient(
        wallet_url=settings.wallet_url,
        rpc_user=settings.user,
        rpc_password=settings.password,
        ca_pem=settings.read_cert(),
        timeout=settings.rpc_timeout,
    )
    explorer = DcrdataClient(
        dcrdata_url=settings.dcrdata_base_url,
        insight_url=settings.insight_base_url,
        timeout=settings.http_timeout,
    )
    return Context(wallet=wallet, explorer=explorer, params=settings.params)


async def _run(settings: Settings, action: str, args: list[str]) -> str:
    ctx = build_context(settings)
    try:
        return await dispatch(ctx, action, args)
    finally:
        await ctx.explorer.close()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dcrms {__version__}")
        raise typer.Exit()


@app.command(
    epilog="Actions: " + ", ".join(ACTIONS),
    context_settings={"help_option_names": ["-h", "--help"]},
)
def main(
    action: Annotated[str | None, typer.Argument(help="Action to run")] = None,
    args: Annotated[
        list[str] | None, typer.Argument(help="Action arguments as key=value")
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", "-C", help="Path to configuration file")
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=_version_callback,
            is_eager=True,
            help="Display version information and exit",
        ),
    ] = False,
    cert: Annotated[
        Path | None, typer.Option("--cert", help="Wallet RPC TLS certificate")
    ] = None,
    wallet: Annotated[str | None, typer.Option("--wallet", help="Wallet RPC URL")] = None,
    user: Annotated[str | None, typer.Option("--user", help="Wallet RPC username")] = None,
    password: Annotated[
        str | None, typer.Option("--pass", help="Wallet RPC password")
    ] = None,
    net: Annotated[
        str | None, typer.Option("--net", help="Network: mainnet or testnet3")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", "-l", help="Log level")
    ] = None,
) -> None:
    """Assemble, sign and broadcast Decred multisig transactions."""
    if not action:
        typer.echo("no action provided; see --help", err=True)
        raise typer.Exit(2)

    setup_logging()
    try:
        settings = load_settings(
            config_file,
            {
                "cert": cert,
                "wallet": wallet,
                "user": user,
                "password": password,
                "net": net,
                "log_level": log_level,
            },
        )
        setup_logging(settings.log_level)
        output = asyncio.run(_run(settings, action, args or []))
    except DcrmsError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e

    if output:
        typer.echo(output)


if __name__ == "__main__":
    app()
