"""
signer-provider CLI

Talks to an upstream JSON-RPC node through SignerProvider, signing locally
with the key in PRIVATE_KEY.

Commands:
  whoami    - Show the signing address
  accounts  - eth_accounts through the provider
  call      - Any JSON-RPC method through the provider
  send      - Sign and relay a transaction
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from loguru import logger

from .config import ProviderSettings
from .errors import ConfigurationError, ProviderError
from .provider import SignerProvider
from .signers.local import SIGNER_PROVIDER_ENV, load_account, local_capabilities
from .transport.http import HttpTransport
from .utils import from_quantity, to_quantity

VERSION = "0.3.0"


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.enable("signer_provider")
    logger.add(
        lambda message: click.echo(message, err=True, nl=False),
        level="DEBUG" if verbose else "WARNING",
        colorize=False,
    )


def _build_provider(settings: ProviderSettings, env_path: Path) -> SignerProvider:
    account = load_account(env_path)
    return SignerProvider(
        settings.rpc_url,
        local_capabilities(account, chain_id=settings.chain_id),
        timeout=settings.timeout,
        transport_factory=HttpTransport,
        nonce_tag=settings.nonce_tag,
    )


async def _request(provider: SignerProvider, payload: dict[str, Any]) -> dict[str, Any]:
    try:
        return await provider.request(payload)
    finally:
        await provider.aclose()


def _run(ctx: click.Context, method: str, params: list) -> dict[str, Any]:
    settings: ProviderSettings = ctx.obj["settings"]
    try:
        provider = _build_provider(settings, ctx.obj["env_path"])
        response = asyncio.run(_request(provider, {
            "id": 1,
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
        }))
    except ConfigurationError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(2)
    except (ProviderError, ValueError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    if response.get("error") is not None:
        click.secho(f"RPC error: {json.dumps(response['error'])}", fg="red")
        sys.exit(1)
    return response


@click.group()
@click.version_option(version=VERSION, prog_name="signer-provider")
@click.option("--rpc-url", envvar="SIGNER_PROVIDER_RPC", default=None, help="Upstream JSON-RPC endpoint")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=SIGNER_PROVIDER_ENV,
    show_default=True,
    help=".env file holding PRIVATE_KEY and settings",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every dispatch decision")
@click.pass_context
def cli(ctx: click.Context, rpc_url: Optional[str], env_file: Path, verbose: bool) -> None:
    """JSON-RPC provider that signs locally and relays to a node."""
    _configure_logging(verbose)
    try:
        settings = ProviderSettings.from_env(env_file)
    except ConfigurationError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(2)
    if rpc_url:
        settings = ProviderSettings(
            rpc_url=rpc_url,
            timeout=settings.timeout,
            nonce_tag=settings.nonce_tag,
            chain_id=settings.chain_id,
        )
    ctx.obj = {"settings": settings, "env_path": env_file}


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the signing address."""
    try:
        account = load_account(ctx.obj["env_path"])
    except ValueError as exc:
        click.echo(f"No key found: {exc}")
        sys.exit(1)
    click.echo(f"Address: {account.address}")


@cli.command()
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """List accounts reported by the provider."""
    response = _run(ctx, "eth_accounts", [])
    for address in response.get("result") or []:
        click.echo(address)


@cli.command()
@click.argument("method")
@click.argument("params_json", default="[]")
@click.pass_context
def call(ctx: click.Context, method: str, params_json: str) -> None:
    """Send METHOD with PARAMS_JSON (a JSON array) through the provider."""
    try:
        params = json.loads(params_json)
        if not isinstance(params, list):
            raise ValueError("Params must be a JSON array")
    except (json.JSONDecodeError, ValueError) as exc:
        click.secho(f"ERROR: Invalid params: {exc}", fg="red")
        sys.exit(1)

    response = _run(ctx, method, params)
    click.echo(json.dumps(response.get("result"), indent=2))


@cli.command()
@click.option("--to", "to_address", default=None, help="Recipient address (omit to deploy)")
@click.option("--value", default=0, type=int, help="ETH value in wei")
@click.option("--data", default=None, help="0x-prefixed calldata")
@click.option("--gas-limit", default=None, type=int, help="Gas limit (default: estimated)")
@click.option("--gas-price", default=None, type=int, help="Gas price in wei (default: node price)")
@click.pass_context
def send(
    ctx: click.Context,
    to_address: Optional[str],
    value: int,
    data: Optional[str],
    gas_limit: Optional[int],
    gas_price: Optional[int],
) -> None:
    """Sign a transaction locally and relay it with eth_sendRawTransaction."""
    try:
        sender = load_account(ctx.obj["env_path"]).address
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    tx: dict[str, Any] = {"from": sender, "value": to_quantity(value)}
    if to_address:
        tx["to"] = to_address
    if data:
        tx["data"] = data
    if gas_limit is not None:
        tx["gasLimit"] = to_quantity(gas_limit)
    if gas_price is not None:
        tx["gasPrice"] = to_quantity(gas_price)

    click.echo(f"  Sender: {sender}")
    if to_address:
        click.echo(f"  Target: {to_address}")
    if value > 0:
        click.echo(f"  Value: {from_quantity(tx['value'])} wei")

    response = _run(ctx, "eth_sendTransaction", [tx])
    click.secho("SUCCESS: Transaction relayed", fg="green")
    click.echo(f"  TX: {response.get('result')}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
