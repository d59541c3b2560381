"""CLI for the Etherscan subprovider."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.traceback import install

from etherscan_subprovider.core import EtherscanError, MethodRegistry, ProviderConfig, ProviderEngine
from etherscan_subprovider.data import get_chain_id, get_network_config, get_supported_networks, load_config
from etherscan_subprovider.rpc import EtherscanSubprovider
from etherscan_subprovider.rpc.client import build_subdomain

app = typer.Typer(
    name="etherscan-subprovider",
    help="Serve Ethereum JSON-RPC calls from the Etherscan API with rate limiting and retries",
    add_completion=False,
)

console = Console()


def _setup_logging(debug: bool) -> None:
    """Route library logging through rich; verbose tracebacks in debug mode."""
    if debug:
        install(show_locals=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=debug)],
    )


def parse_param(raw: str) -> Any:
    """
    Parse a CLI parameter as JSON, falling back to the raw string.

    Hex quantities and addresses stay strings; objects, booleans, and
    numbers are decoded.

    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


async def _send(config: ProviderConfig, method: str, params: list[Any]) -> Any:
    async with EtherscanSubprovider(config) as subprovider:
        engine = ProviderEngine([subprovider])
        return await engine.send(method, *params)


@app.command()
def call(
    method: str = typer.Argument(..., help="JSON-RPC method, e.g. eth_getBalance"),
    params: list[str] | None = typer.Argument(None, help="Method params; JSON values are decoded"),
    network: str | None = typer.Option(None, "--network", "-n", help="Etherscan network (default: mainnet)"),
    https: bool | None = typer.Option(None, "--https/--http", help="Use https for API calls"),
    api_key: str | None = typer.Option(None, "--api-key", "-k", help="Etherscan API key"),
    config_file: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML provider config"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Send one JSON-RPC call through the dispatcher and print the result.

    Examples:

        # Latest block number
        etherscan-subprovider call eth_blockNumber

        # Balance on sepolia
        etherscan-subprovider call eth_getBalance 0xABC... latest --network sepolia

        # eth_call with a call object
        etherscan-subprovider call eth_call '{"to": "0x...", "data": "0x..."}' latest
    """
    _setup_logging(debug)

    config = load_config(config_file, network=network, https=https, api_key=api_key)
    # A single call needs no pacing before the first tick
    config.tick_interval = min(config.tick_interval, 0.05)

    try:
        result = asyncio.run(_send(config, method, [parse_param(p) for p in params or []]))
    except EtherscanError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            raise
        raise typer.Exit(1)

    console.print_json(json.dumps(result))


@app.command()
def methods() -> None:
    """List all supported JSON-RPC methods."""
    table = Table(title="Supported Methods", show_header=True, header_style="bold magenta")
    table.add_column("RPC Method", style="cyan")
    table.add_column("Module", style="green")
    table.add_column("Action", style="yellow")
    table.add_column("HTTP", style="white")

    for name in MethodRegistry.list_methods():
        spec = MethodRegistry.get(name)
        etherscan_call = spec.builder([])
        action = etherscan_call.action
        if spec.aggregator is not None:
            action = f"{action} + eth_getTransactionReceipt"
        table.add_row(name, etherscan_call.module.value, action, etherscan_call.http_method.value)

    console.print(table)


@app.command()
def networks() -> None:
    """List all bundled networks."""
    table = Table(title="Supported Networks", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="cyan")
    table.add_column("Chain ID", style="green", justify="right")
    table.add_column("API Host", style="blue")
    table.add_column("Status", style="yellow")

    for name in get_supported_networks():
        network_config = get_network_config(name)
        status = "deprecated" if network_config.get("deprecated") else "✓ Active"
        table.add_row(name, str(get_chain_id(name)), f"{build_subdomain(name)}.etherscan.io", status)

    console.print(table)


if __name__ == "__main__":
    app()
