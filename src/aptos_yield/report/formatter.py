"""Rich console formatter for yield analyses."""

from __future__ import annotations

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..domain import YieldAnalysis, YieldStrategy


def _format_amount(amount: float) -> str:
    return f"{amount:,.8f}".rstrip("0").rstrip(".")


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 16:
        return address
    return f"{address[:10]}...{address[-4:]}"


def build_strategy_table(strategies: list[YieldStrategy]) -> Table:
    """Tabulate strategies with their risks and requirements."""
    table = Table(expand=True, show_lines=True)
    table.add_column("Protocol", style="cyan", no_wrap=True)
    table.add_column("Token", style="cyan", no_wrap=True)
    table.add_column("Amount", justify="right")
    table.add_column("APY %", justify="right", style="yellow")
    table.add_column("Yield / day", justify="right", style="green")
    table.add_column("Risks", style="red")
    table.add_column("Requirements", style="dim")

    for strategy in strategies:
        table.add_row(
            strategy.protocol,
            strategy.token,
            _format_amount(strategy.amount),
            f"{strategy.estimated_apy:.2f}",
            _format_amount(strategy.estimated_yield_per_day),
            "\n".join(strategy.risks),
            "\n".join(strategy.requirements),
        )
    return table


def format_analysis(
    analysis: YieldAnalysis, address: str, console: Console | None = None
) -> None:
    """Print strategies and the recommendation as a dashboard on stdout.

    Args:
        analysis: Result of a wallet analysis
        address: The analyzed wallet address
        console: Console to print to (defaults to stdout)
    """
    console = console or Console()

    if analysis.strategies:
        strategies_view = build_strategy_table(analysis.strategies)
    else:
        strategies_view = "[dim]No strategies above the minimum yield threshold.[/]"

    strategies_panel = Panel(
        strategies_view,
        title="[bold]Yield Opportunities[/]",
        border_style="cyan",
    )
    recommendation_panel = Panel(
        Markdown(analysis.ai_recommendation),
        title="[bold]AI Recommendation[/]",
        border_style="green",
    )

    outer_panel = Panel(
        Group(strategies_panel, "", recommendation_panel),
        title=f"[bold white]Aptos Yield · {_truncate_address(address)}[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()
