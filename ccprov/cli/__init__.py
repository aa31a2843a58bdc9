"""Command line interface for ccprov."""

from ccprov.cli.main import cli, main

__all__ = [
    "cli",
    "main",
]
