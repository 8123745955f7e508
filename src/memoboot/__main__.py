"""Allow ``python -m memoboot``."""

from memoboot.cli import cli

if __name__ == "__main__":
    cli()
