"""mcpbridge command-line interface."""

from mcpbridge.cli.main import cli, main

__all__ = ["cli", "main"]
