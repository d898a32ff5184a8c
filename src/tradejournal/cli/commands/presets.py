"""Presets command - list and inspect benchmark presets."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from tradejournal.cli.commands.common import config_option, setup_system
from tradejournal.libraries.performance.thresholds import (
    METRIC_LABELS,
    list_builtin_presets,
    list_custom_presets,
    load_benchmark_table,
)

console = Console()


@click.command("presets")
@click.argument("name", required=False)
@config_option
def presets_command(name: str | None, config_file: Path | None):
    """
    List benchmark presets, or show the thresholds of preset NAME.

    Custom presets are read from metrics.presets_dir in system.yaml.
    """
    try:
        system_config = setup_system(config_file, None)
        presets_dir = system_config.metrics.presets_dir

        if name is None:
            table = Table(title="Benchmark Presets", box=None, padding=(0, 2))
            table.add_column("Name", style="cyan")
            table.add_column("Source")
            table.add_column("Description", style="dim")

            for preset in list_builtin_presets():
                table.add_row(preset, "built-in", load_benchmark_table(preset).description)
            for preset in list_custom_presets(presets_dir):
                if preset in list_builtin_presets():
                    continue  # Shadowed by the built-in preset
                table.add_row(preset, f"custom ({presets_dir})", load_benchmark_table(preset, presets_dir).description)

            console.print(table)
            return

        benchmark = load_benchmark_table(name, presets_dir)
        table = Table(title=f"Preset '{benchmark.name}'", caption=benchmark.description, box=None, padding=(0, 2))
        table.add_column("Metric", style="cyan")
        table.add_column("Good", justify="right", style="green")
        table.add_column("Warning", justify="right", style="yellow")
        table.add_column("Direction", justify="center")

        for metric_id, rule in benchmark.rules.items():
            table.add_row(
                METRIC_LABELS.get(metric_id, metric_id),
                str(rule.good),
                str(rule.warning),
                "higher" if rule.higher_is_better else "lower",
            )
        console.print(table)

    except Exception as e:
        console.print(f"\n[bold red]✗ Preset lookup failed:[/bold red] {e}")
        sys.exit(1)
