"""
Shared helpers for CLI commands: ledger construction and error output.
"""

import json
from typing import Optional

import typer
from rich.console import Console

from stakesim.config import Settings
from stakesim.executor import ExecutorSettings
from stakesim.ledger import Ledger, MemoryLedger, Web3Ledger

BACKENDS = ("memory", "web3")

console = Console()
err_console = Console(stderr=True)


def fail(message: str, code: int, json_output: bool = False, **extra) -> None:
    """Print an error and exit with code."""
    if json_output:
        print(json.dumps({"error": message, **extra}))
    else:
        err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)


def build_ledger(backend: str, settings: Settings, rpc_url: Optional[str] = None) -> Ledger:
    """
    Build the ledger for a backend.

    Raises:
        ValueError: If the backend is unknown or web3 has no RPC URL
    """
    if backend == "memory":
        return MemoryLedger()
    if backend == "web3":
        url = rpc_url or settings.rpc_url
        if not url:
            raise ValueError("web3 backend needs --rpc-url or STAKESIM_RPC_URL")
        return Web3Ledger.from_url(url, settings.contract_addresses())
    raise ValueError(f"unknown backend {backend!r} (expected one of {', '.join(BACKENDS)})")


def executor_settings(ledger: Ledger, settings: Settings) -> ExecutorSettings:
    """Executor settings for a ledger; the in-memory ledger brings its own identities."""
    if isinstance(ledger, MemoryLedger):
        return ExecutorSettings(
            min_native_balance=settings.min_native_balance,
            approval_amount=settings.approval_amount,
            funder=ledger.funder,
            owner=ledger.owner,
        )
    return ExecutorSettings.from_settings(settings)
