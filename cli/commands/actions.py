"""
Action batch commands: inspect
"""

import json
from collections import Counter

import typer
from rich.table import Table

from stakesim.core.actions import load_actions, validate_correlation
from stakesim.core.errors import CorrelationError

from cli.commands import common

app = typer.Typer()


@app.command()
def inspect(
    actions_path: str = typer.Argument(..., help="JSON file with the ordered action batch"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Count actions by type and kind, and validate stake/unstake correlation.

    Examples:
        stakesim actions inspect actions.json
        stakesim actions inspect actions.json --json
    """
    try:
        actions = load_actions(actions_path)
    except FileNotFoundError:
        common.fail("Actions file not found", 1, json_output, path=actions_path)
    except ValueError as e:
        common.fail(str(e), 1, json_output)

    counts = Counter((a.type.value, a.kind.value) for a in actions)
    error = None
    pairs = {}
    try:
        pairs = validate_correlation(actions)
    except CorrelationError as e:
        error = str(e)

    if json_output:
        print(json.dumps({
            "count": len(actions),
            "counts": {f"{t}/{k}": n for (t, k), n in sorted(counts.items())},
            "pairs": len(pairs),
            "valid": error is None,
            "error": error,
        }, indent=2))
    else:
        table = Table(title=f"Actions: {actions_path}")
        table.add_column("Type", style="green")
        table.add_column("Kind", style="yellow")
        table.add_column("Count", style="cyan", justify="right")
        for (t, k), n in sorted(counts.items()):
            table.add_row(t, k, str(n))
        common.console.print(table)
        if actions:
            first, last = min(a.timestamp for a in actions), max(a.timestamp for a in actions)
            common.console.print(f"  Time span: [cyan]{first}[/cyan] .. [cyan]{last}[/cyan]")
        common.console.print(f"  Correlated pairs: [cyan]{len(pairs)}[/cyan]")
        if error is None:
            common.console.print("[green]✓ Correlation valid[/green]")
        else:
            common.console.print(f"[red]✗ {error}[/red]")

    if error is not None:
        raise typer.Exit(1)
