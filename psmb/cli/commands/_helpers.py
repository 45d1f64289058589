"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import typer

from psmb.core.errors import ErrorCode
from psmb.core.result import Err, Result
from psmb.output.errors import AnyError, error_exit_code, print_error

if TYPE_CHECKING:
    from psmb.cli.context import CLIContext


def exit_on_error[T](result: Result[T, AnyError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        print_error(result.error, ctx.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def fail(ctx: CLIContext, message: str, *, code: ErrorCode = ErrorCode.USER_ERROR) -> NoReturn:
    ctx.console.error(message)
    raise typer.Exit(code=int(code))


def resolve_path(ctx: CLIContext, value: Path | str) -> Path:
    """Make ``value`` absolute relative to the project root."""
    p = Path(value).expanduser()
    if not p.is_absolute():
        p = ctx.root / p
    return p


def module_name(ctx: CLIContext, override: str | None) -> str:
    name = override or ctx.config.module.name
    if not name:
        fail(ctx, "module name unknown", code=ErrorCode.USER_ERROR)
    return name
