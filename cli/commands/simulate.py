"""
Simulate command: replay an action batch against a ledger
"""

import json
from typing import Optional

import typer
from rich.table import Table

from stakesim.config import Settings
from stakesim.core.actions import load_actions, partition
from stakesim.core.canonical import canonicalize
from stakesim.core.errors import CorrelationError, LedgerError, ReplayAbortedError
from stakesim.core.numbers import format_ether
from stakesim.executor import Session
from stakesim.replay import ReplayEngine, WarmupPlan

from cli.commands import common


def simulate_command(
    actions_path: str = typer.Argument(..., help="JSON file with the ordered action batch"),
    backend: str = typer.Option("memory", "--backend", "-b", help="Ledger backend: memory or web3"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="JSON-RPC endpoint (web3 backend)"),
    warp: Optional[str] = typer.Option(None, "--warp", help="Time-warp to this date before replaying"),
    synthetic_only: bool = typer.Option(False, "--synthetic-only", help="Replay synthetic actions only"),
    skip_warmup: bool = typer.Option(False, "--skip-warmup", help="Do not fund or register reward contracts"),
    report: Optional[str] = typer.Option(None, "--report", "-r", help="Write the replay report to this file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay stake/unstake actions and reconcile rewards.

    Examples:
        stakesim simulate actions.json
        stakesim simulate actions.json --synthetic-only --report report.json
        stakesim simulate actions.json --backend web3 --warp 2021-06-01
    """
    try:
        actions = load_actions(actions_path)
    except FileNotFoundError:
        common.fail("Actions file not found", 1, json_output, path=actions_path)
    except ValueError as e:
        common.fail(str(e), 1, json_output)

    if synthetic_only:
        _, actions = partition(actions)

    settings = Settings.from_env()
    try:
        ledger = common.build_ledger(backend, settings, rpc_url=rpc_url)
    except (ValueError, LedgerError) as e:
        common.fail(str(e), 1, json_output)

    session = Session(ledger, common.executor_settings(ledger, settings))
    engine = ReplayEngine(session)

    try:
        if not skip_warmup:
            engine.warm_up(WarmupPlan(warp_to=warp))
        elif warp:
            common.fail("--warp needs warm-up", 1, json_output)
        if not json_output:
            common.console.print(f"[bold]Replaying {len(actions)} actions...[/bold]")
        result = engine.run(actions)
    except CorrelationError as e:
        common.fail(str(e), 1, json_output)
    except ReplayAbortedError as e:
        common.fail(str(e), 2, json_output, index=e.index, action=e.action.to_dict(), snapshot=e.snapshot)
    except LedgerError as e:
        if e.index is None:
            common.fail(str(e), 2, json_output)
        common.fail(
            f"action #{e.index} ({e.action.label()}): {e}",
            2,
            json_output,
            index=e.index,
            action=e.action.to_dict(),
            snapshot=e.snapshot,
        )
    except ValueError as e:
        common.fail(str(e), 2, json_output)

    output = canonicalize(result.to_report())
    if report:
        with open(report, "w") as f:
            json.dump(output, f, indent=2)

    if json_output:
        print(json.dumps(output, indent=2))
        return

    table = Table(title="Replayed actions")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Action", style="green")
    table.add_column("Address", style="yellow")
    table.add_column("Stake ID", justify="right")
    table.add_column("Reward", justify="right")
    table.add_column("Delta", justify="right")
    for row in output["actions"]:
        table.add_row(
            str(row["index"]),
            row["action"],
            row["address"],
            row.get("stakeID", ""),
            format_ether(int(row["reward"])) if "reward" in row else "",
            format_ether(int(row["delta"])) if "delta" in row else "",
        )
    common.console.print(table)

    stats = result.stats
    common.console.print(f"[green]✓ Replayed {len(result.results)} actions[/green]")
    common.console.print(f"  Total |delta|: [yellow]{format_ether(stats.total_absolute_delta)}[/yellow]")
    common.console.print(f"  Net delta: [yellow]{format_ether(stats.net_delta)}[/yellow]")
    common.console.print(f"  Rewards paid: [cyan]{format_ether(stats.total_rewards_paid)}[/cyan]")
    common.console.print(f"  Final timestamp: [cyan]{result.final_timestamp}[/cyan]")
    if report:
        common.console.print(f"  Report: {report}")
