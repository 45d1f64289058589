"""Error presentation utilities.

One place that knows how each error payload reads on the console and
which exit code it maps to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from psmb.core.config import ConfigError
from psmb.core.errors import ErrorCode
from psmb.datafile.parse import DataFileError
from psmb.output.console import Style
from psmb.services.dependencies.errors import ConflictError, InstallError, RequiresError
from psmb.services.manifest.compat import ConfigConflictError
from psmb.services.manifest.source import SourceError
from psmb.services.release.errors import ReleaseError

if TYPE_CHECKING:
    from psmb.output.console import ConsoleProtocol

__all__ = ["AnyError", "error_exit_code", "print_error"]

type AnyError = (
    ConflictError
    | ConfigConflictError
    | InstallError
    | RequiresError
    | DataFileError
    | SourceError
    | ConfigError
    | ReleaseError
)


def print_error(error: AnyError, console: ConsoleProtocol) -> None:
    """Print an error payload with its hint, if any."""
    match error:
        case ConflictError(name=name):
            console.error(f"conflicting version requirements for {name}: {error.pretty()}")
        case ConfigConflictError():
            console.error(f"conflicting settings: {error.pretty()}")
        case InstallError() | RequiresError() | DataFileError():
            console.error(error.pretty())
        case SourceError(message=message):
            console.error(message)
        case ConfigError(message=message):
            console.error(message)
        case ReleaseError(message=message, hint=hint):
            console.error(message)
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def error_exit_code(error: AnyError) -> int:
    """Exit code for an error payload."""
    match error:
        case ConflictError() | ConfigConflictError() | ConfigError() | RequiresError():
            return int(ErrorCode.USER_ERROR)
        case InstallError():
            return int(ErrorCode.NETWORK_ERROR)
        case DataFileError() | SourceError():
            return int(ErrorCode.IO_ERROR)
        case ReleaseError(kind=kind):
            if kind in ("gh_missing", "pwsh_missing"):
                return int(ErrorCode.ENV_ERROR)
            if kind == "invalid_event":
                return int(ErrorCode.IO_ERROR)
            if kind == "invalid_input":
                return int(ErrorCode.USER_ERROR)
            return int(ErrorCode.NETWORK_ERROR)
