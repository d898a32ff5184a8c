"""Metrics command - compute performance metrics for a trade file."""

import json
import sys
import traceback
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import click
from rich.console import Console

from tradejournal.cli.commands.common import config_option, log_level_option, policy_option, setup_system
from tradejournal.libraries.performance.models import AllMetrics
from tradejournal.libraries.performance.thresholds import load_benchmark_table
from tradejournal.services.analytics import JournalAnalyticsService
from tradejournal.services.analytics.loaders import load_benchmark_returns
from tradejournal.services.reporting import display_analysis_report, write_drawdowns_csv, write_json_report

console = Console()


def _load_previous(path: Path) -> AllMetrics:
    """Read the metrics section of an earlier JSON report."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return AllMetrics.model_validate(data.get("metrics", data))


@click.command("metrics")
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--preset", "-p", help="Benchmark preset name (default from config)")
@click.option("--risk-free-rate", type=float, help="Annual risk-free rate as decimal (e.g. 0.04)")
@click.option("--initial-capital", type=float, help="Starting account equity")
@click.option("--periodicity", type=click.Choice(["daily", "weekly", "monthly"]), help="Return aggregation period")
@click.option(
    "--benchmark",
    "benchmark_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Benchmark return series (CSV/JSON) for beta, Treynor and Jensen's alpha",
)
@click.option(
    "--previous",
    "previous_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Earlier JSON report; adds trend arrows",
)
@policy_option
@click.option("--detect-markets", is_flag=True, help="Infer market type from symbols (futures/forex multipliers)")
@click.option(
    "--detail",
    type=click.Choice(["summary", "standard", "full"]),
    default="standard",
    show_default=True,
    help="Console detail level",
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON instead of tables")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the JSON report here (and the drawdown series next to it as <name>_drawdowns.csv)",
)
@click.option(
    "--save",
    is_flag=True,
    help="Write the report to output.default_results_dir as <file>_<timestamp>.json (ignored with --output)",
)
@log_level_option
def metrics_command(
    trades_file: Path,
    config_file: Path | None,
    preset: str | None,
    risk_free_rate: float | None,
    initial_capital: float | None,
    periodicity: str | None,
    benchmark_file: Path | None,
    previous_file: Path | None,
    policy: str | None,
    detect_markets: bool,
    detail: str,
    as_json: bool,
    output: Path | None,
    save: bool,
    log_level: str | None,
):
    """
    Compute performance metrics for a trade journal file.

    TRADES_FILE is a CSV or JSON export; broker column names such as
    Side, Qty or Entry are mapped automatically.

    Examples:

        # Default benchmarks and config
        tradejournal metrics trades.csv

        # Stricter benchmarks, monthly returns
        tradejournal metrics trades.csv --preset conservative --periodicity monthly

        # Skip bad rows, save JSON + drawdown CSV
        tradejournal metrics trades.csv --policy exclude -o output/reports/june.json

        # Timestamped report in output.default_results_dir
        tradejournal metrics trades.csv --save

        # Machine-readable output
        tradejournal metrics trades.json --json --log-level ERROR
    """
    try:
        system_config = setup_system(config_file, log_level)
        service = JournalAnalyticsService(system_config)

        benchmark_returns = load_benchmark_returns(benchmark_file) if benchmark_file else None
        metrics_config = service.engine_config(
            risk_free_rate=Decimal(str(risk_free_rate)) if risk_free_rate is not None else None,
            initial_capital=Decimal(str(initial_capital)) if initial_capital is not None else None,
            periodicity=periodicity,
            benchmark_returns=benchmark_returns,
        )
        table = load_benchmark_table(preset, system_config.metrics.presets_dir) if preset else service.benchmark_table()
        previous = _load_previous(previous_file) if previous_file else None

        validation = service.load_trades(trades_file, policy=policy, detect_markets=detect_markets)  # type: ignore[arg-type]
        report = service.analyze(validation.trades, metrics_config=metrics_config, table=table, previous=previous)

        if save and not output:
            timestamp = datetime.now().strftime(system_config.output.timestamp_format)
            output = Path(system_config.output.default_results_dir) / f"{trades_file.stem}_{timestamp}.json"

        if output:
            json_path = write_json_report(report, output)
            csv_path = write_drawdowns_csv(report, output.with_name(f"{output.stem}_drawdowns.csv"))

        if as_json:
            click.echo(report.model_dump_json(indent=2))
        else:
            console.print(f"\n[bold cyan]Journal:[/bold cyan] {trades_file}")
            console.print(
                f"[bold cyan]Benchmarks:[/bold cyan] {table.name}    "
                f"[bold cyan]Periodicity:[/bold cyan] {metrics_config.periodicity}"
            )
            if validation.rejected:
                console.print(f"[yellow]⚠ Excluded {validation.rejected_count} invalid record(s):[/yellow]")
                for rejected in validation.rejected:
                    console.print(f"  [dim]#{rejected.index} {rejected.trade_id or ''}[/dim] {rejected.reason}")
            display_analysis_report(report, detail_level=detail, console=console)  # type: ignore[arg-type]

        if output and not as_json:
            console.print(f"[green]✓ Report saved:[/green] {json_path}")
            console.print(f"[green]✓ Drawdowns saved:[/green] {csv_path}")

    except Exception as e:
        console.print(f"\n[bold red]✗ Metrics failed:[/bold red] {e}")
        if log_level and log_level.upper() == "DEBUG":
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
        sys.exit(1)
