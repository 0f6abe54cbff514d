"""Expression CLI commands: eval and functions."""

import json

import click
import yaml

from transformexpr.config import EvaluatorConfig
from transformexpr.expressions import (
    BUILTINS,
    ExpressionError,
    FunctionCategory,
    evaluate_strict,
)


def _parse_variable(raw: str) -> tuple[str, float | str]:
    """Split NAME=VALUE; values that are not numbers stay as strings."""
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got {raw!r}", param_hint="--var")
    try:
        return name, float(value)
    except ValueError:
        return name, value


@click.command("eval")
@click.argument("expression")
@click.option(
    "--var",
    "variables",
    multiple=True,
    metavar="NAME=VALUE",
    help="Bind a variable. Repeatable; the first binding of a name wins.",
)
def eval_cmd(expression: str, variables: tuple[str, ...]):
    """Evaluate EXPRESSION and print the result."""
    bindings = [_parse_variable(v) for v in variables]

    try:
        config = EvaluatorConfig.from_env()
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    try:
        value = evaluate_strict(expression, bindings, config=config)
    except (ExpressionError, RecursionError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(format(value, ".9g"))


@click.command()
@click.option(
    "--category",
    type=click.Choice([c.value for c in FunctionCategory]),
    default=None,
    help="Only list functions in this category.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    show_default=True,
)
def functions(category: str | None, output_format: str):
    """List the built-in functions."""
    docs = BUILTINS.export_documentation(
        FunctionCategory(category) if category else None
    )

    if output_format == "json":
        click.echo(json.dumps(docs, indent=2))
    else:
        click.echo(yaml.safe_dump(docs, sort_keys=False), nl=False)
