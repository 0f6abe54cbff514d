"""Allow ``python -m transformexpr``."""

from transformexpr.cli.main import cli

if __name__ == "__main__":
    cli()
