"""Excursion command - MAE/MFE analysis from price samples."""

import sys
import traceback
from pathlib import Path

import click
from rich.console import Console

from tradejournal.cli.commands.common import config_option, log_level_option, policy_option, setup_system
from tradejournal.services.analytics import JournalAnalyticsService
from tradejournal.services.reporting import display_excursion_report

console = Console()


@click.command("excursion")
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("prices_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--trade-id", "-t", "trade_ids", multiple=True, help="Only analyze these trades (repeatable)")
@config_option
@policy_option
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON instead of tables")
@log_level_option
def excursion_command(
    trades_file: Path,
    prices_file: Path,
    trade_ids: tuple[str, ...],
    config_file: Path | None,
    policy: str | None,
    as_json: bool,
    log_level: str | None,
):
    """
    Compute maximum adverse/favorable excursion per trade.

    PRICES_FILE holds price samples (timestamp, price, optional trade_id
    and volume). Samples without a trade_id apply to every trade; each
    trade only uses samples between its entry and exit times.

    Examples:

        tradejournal excursion trades.csv prices.csv

        tradejournal excursion trades.csv prices.csv -t T-17 -t T-18 --json
    """
    try:
        system_config = setup_system(config_file, log_level)
        service = JournalAnalyticsService(system_config)

        validation = service.load_trades(trades_file, policy=policy)  # type: ignore[arg-type]
        trades = validation.trades
        if trade_ids:
            wanted = set(trade_ids)
            trades = [trade for trade in trades if trade.trade_id in wanted]
            missing = wanted - {trade.trade_id for trade in trades}
            if missing:
                raise click.BadParameter(f"Unknown trade id(s): {', '.join(sorted(missing))}", param_hint="--trade-id")

        report = service.excursions(trades, service.load_prices(prices_file))

        if as_json:
            click.echo(report.model_dump_json(indent=2))
        elif not report.results:
            console.print("[yellow]No trades have price samples.[/yellow]")
        else:
            display_excursion_report(report.results, report.stats, console=console)

    except Exception as e:
        console.print(f"\n[bold red]✗ Excursion analysis failed:[/bold red] {e}")
        if log_level and log_level.upper() == "DEBUG":
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
        sys.exit(1)
