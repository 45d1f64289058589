"""Range command - print the install range for legacy version bounds."""

from __future__ import annotations

import typer

from psmb.services.dependencies.ranges import convert_version_spec


def version_range(
    minimum: str | None = typer.Option(None, "--minimum", help="ModuleVersion (lowest allowed)"),
    maximum: str | None = typer.Option(None, "--maximum", help="MaximumVersion (highest allowed)"),
    exact: str | None = typer.Option(None, "--exact", help="RequiredVersion"),
) -> None:
    """Convert ModuleVersion/MaximumVersion/RequiredVersion to a NuGet range."""
    converted = convert_version_spec(minimum=minimum, maximum=maximum, exact=exact)
    # No output at all means "no constraint".
    if converted is not None:
        typer.echo(converted)
