"""transformexpr CLI entry point."""

import logging

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """transformexpr: evaluate per-axis transform expressions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from transformexpr.cli.eval_cmd import eval_cmd, functions  # noqa: E402
from transformexpr.cli.layout_cmd import layout  # noqa: E402

cli.add_command(eval_cmd)
cli.add_command(functions)
cli.add_command(layout)
