"""Layout CLI commands: validate and apply."""

from pathlib import Path

import click

from transformexpr.config import EvaluatorConfig
from transformexpr.layout import (
    LayoutError,
    apply_transforms,
    dump_targets,
    load_plan,
    validate_expressions,
)


@click.group()
def layout():
    """Layout plan commands."""
    pass


@layout.command()
@click.argument("plan_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(plan_path: Path):
    """Check that every expression in PLAN_PATH compiles."""
    try:
        plan = load_plan(plan_path)
    except LayoutError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    failures = validate_expressions(plan.expressions, plan.targets)
    if failures:
        click.echo(
            click.style(f"Failed to compile expression in {', '.join(failures)}", fg="red")
        )
        raise SystemExit(1)

    click.echo(
        click.style(
            f"All expressions are valid ({len(plan.targets)} target(s)).", fg="green"
        )
    )


@layout.command()
@click.argument("plan_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "output_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the updated targets to this file instead of stdout.",
)
def apply(plan_path: Path, output_path: Path | None):
    """Apply the expressions in PLAN_PATH and print the updated targets."""
    try:
        plan = load_plan(plan_path)
        targets = apply_transforms(
            plan.expressions, plan.targets, config=EvaluatorConfig.from_env()
        )
    except (LayoutError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    output = dump_targets(targets)
    if output_path is None:
        click.echo(output, nl=False)
    else:
        output_path.write_text(output)
        click.echo(f"Wrote {len(targets)} target(s) to {output_path}")
