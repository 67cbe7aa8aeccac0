"""CLI entrypoint for the Aptos yield assistant."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from .adapters import ADAPTER_REGISTRY
from .clients import AnthropicRecommendationClient, AptosChainClient
from .domain import YieldStrategy
from .logger import setup_logging
from .orchestrator import UnsupportedProtocolError, YieldAssistant
from .report import format_analysis
from .settings import Network, YieldSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Find and execute the best yield for an Aptos wallet.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("aptos_yield")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise typer.BadParameter("settings were not initialised")
    return state


def _build_assistant(state: AppState) -> tuple[YieldAssistant, AptosChainClient]:
    chain = AptosChainClient(state.settings)
    recommender = AnthropicRecommendationClient(state.settings)
    return YieldAssistant(state, chain, recommender), chain


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [aptos_yield] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use (mainnet or testnet)."),
    ] = None,
    node_url: Annotated[
        str | None,
        typer.Option("--node-url", help="Aptos fullnode REST URL; overrides the network default."),
    ] = None,
    min_yield_difference: Annotated[
        float | None,
        typer.Option(
            "--min-yield",
            help="Minimum APY (percentage points) a strategy must exceed.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration and logging shared by every command."""
    if config_path:
        os.environ["APTOS_YIELD_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | float | str] = {}
    if network is not None:
        init_kwargs["network"] = network
    if node_url is not None:
        init_kwargs["node_url"] = node_url
    if min_yield_difference is not None:
        init_kwargs["min_yield_difference"] = min_yield_difference
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = YieldSettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    ctx.obj = AppState(settings=settings, logger=_build_logger())


@app.command()
def analyze(
    ctx: typer.Context,
    address: Annotated[
        str | None,
        typer.Argument(help="Wallet address to analyze; defaults to the configured account."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the analysis as JSON instead of a dashboard."),
    ] = False,
):
    """Scan a wallet, rank yields per token and ask for a recommendation."""
    state = _state(ctx)
    if address is None and not (
        state.settings.account_address or state.settings.private_key
    ):
        raise typer.BadParameter(
            "Pass an address or configure account_address / private_key.",
            param_hint=["ADDRESS"],
        )

    async def _run() -> None:
        assistant, chain = _build_assistant(state)
        try:
            target = address or chain.account_address
            analysis = await assistant.analyze_yield_opportunities(target)
        finally:
            await chain.close()

        if as_json:
            typer.echo(json.dumps(analysis.to_dict(), indent=2))
        else:
            format_analysis(analysis, target)

    asyncio.run(_run())


@app.command()
def execute(
    ctx: typer.Context,
    protocol: Annotated[str, typer.Option("--protocol", "-p", help="Protocol to deposit into.")],
    token: Annotated[str, typer.Option("--token", "-t", help="Token symbol to deposit.")],
    amount: Annotated[float, typer.Option("--amount", "-a", min=0, help="Amount in whole tokens.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Confirm that a transaction should be submitted."),
    ] = False,
):
    """Submit a deposit or stake for a chosen strategy."""
    state = _state(ctx)
    if not state.settings.private_key:
        raise typer.BadParameter(
            "private_key is required to submit transactions.",
            param_hint=["APTOS_YIELD_PRIVATE_KEY"],
        )
    if not yes:
        raise typer.BadParameter(
            f"Refusing to submit {amount} {token} to {protocol} without --yes."
        )

    canonical = next(
        (name for name in ADAPTER_REGISTRY if name.lower() == protocol.lower()),
        protocol,
    )
    strategy = YieldStrategy(
        protocol=canonical,
        token=token,
        amount=amount,
        estimated_apy=0.0,
        estimated_yield_per_day=0.0,
    )

    async def _run() -> str:
        assistant, chain = _build_assistant(state)
        try:
            return await assistant.execute_strategy(strategy)
        finally:
            await chain.close()

    try:
        tx_hash = asyncio.run(_run())
    except UnsupportedProtocolError as e:
        raise typer.BadParameter(str(e), param_hint=["--protocol"]) from e
    typer.echo(tx_hash)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
