"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging

import typer

from statcalc import __version__
from statcalc.cli.stats import stats_app

app = typer.Typer(
    name="statcalc",
    help="Weighted descriptive, frequency, crosstab and exploratory statistics.",
    add_completion=False,
)

app.add_typer(stats_app, name="stats")

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"statcalc {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """statcalc: weighted statistics for survey-style variables."""
    pass


if __name__ == "__main__":
    app()
