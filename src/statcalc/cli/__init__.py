"""Command-line interface for statcalc."""

from statcalc.cli.main import app

__all__ = ["app"]
