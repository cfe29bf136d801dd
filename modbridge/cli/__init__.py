"""
cli — command-line interface for modbridge.

Entry points
────────────
  python -m modbridge   (via modbridge/__main__.py)
  modbridge             (via pyproject.toml [project.scripts])

Subcommands: inspect | probe
"""

from modbridge.cli.main import build_parser, cmd_inspect, cmd_probe, main

__all__ = ["build_parser", "cmd_inspect", "cmd_probe", "main"]
