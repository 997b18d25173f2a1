"""
CLI module for eventrelay - authoring and diagnostics commands.
"""

from eventrelay.cli.app import cli


def main():
    """Main entry point for the eventrelay CLI."""
    cli()


__all__ = ["cli", "main"]
