"""Trade journal CLI main entry point."""

import click

from tradejournal import __version__
from tradejournal.cli.commands import excursion_command, metrics_command, presets_command


@click.group()
@click.version_option(version=__version__)
def main():
    """Trade Journal - performance metrics for logged trades"""
    pass


# Register commands
main.add_command(metrics_command)
main.add_command(excursion_command)
main.add_command(presets_command)


if __name__ == "__main__":
    main()
