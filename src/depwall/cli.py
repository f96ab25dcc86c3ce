"""depwall CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from depwall import __version__


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


@click.group()
@click.version_option(version=__version__, prog_name="depwall")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """depwall - enforce package dependency rules."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


@main.command()
@click.argument(
    "config",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project or root package directory (default: current directory).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json", "porcelain"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.pass_context
def check(
    ctx: click.Context,
    config: Path | None,
    *,
    project: Path | None,
    fmt: str,
) -> None:
    """Check the project's imports against the rules in CONFIG.

    CONFIG defaults to depwall.yml in the project directory.
    Exit codes: 0 = no violations, 1 = violations found,
    2 = configuration or import resolution error.
    """
    from depwall.errors import DepwallError
    from depwall.linter import FORMATTERS, lint

    project_root = project or Path.cwd()

    try:
        result = lint(project_root, config_path=config)
    except DepwallError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    output = FORMATTERS[fmt](result)
    if fmt == "text" and result.ok and ctx.obj.get("quiet"):
        output = ""
    if output:
        click.echo(output)

    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
