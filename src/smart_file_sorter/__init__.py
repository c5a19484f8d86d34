"""Smart File Sorter — sorts a folder into per-extension subfolders and removes exact duplicates."""

__version__ = "0.1.0"


def main() -> None:
    """Entry point for the command line tool."""
    from smart_file_sorter.cli import cli

    cli()
