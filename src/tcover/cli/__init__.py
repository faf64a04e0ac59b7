"""tcover CLI - Command line interface for tcover."""

from tcover.cli.commands import cli


def main() -> None:
    """Main entry point for the tcover CLI."""
    cli()


__all__ = ["main", "cli"]
