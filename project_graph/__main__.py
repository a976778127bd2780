"""Entry point for ``python -m project_graph``."""

from project_graph.cli import cli

cli()
