"""Install merged dependencies, one at a time, with bounded retries.

Each module is saved into a single destination directory which is then
appended to the module search path (`PSModulePath`), so later steps of the
same run (and the module under build) can import it. The search path only
ever grows during a run.
"""

from __future__ import annotations

import os
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from psmb.core.result import Err, Ok, Result
from psmb.core.retry import with_retry
from psmb.output.console import ConsoleProtocol
from psmb.platform.process import ProcessError
from psmb.platform.process import run as run_process
from psmb.platform.pwsh import is_transient_pwsh_error, ps_quote, pwsh_command
from psmb.services.dependencies.errors import InstallError
from psmb.services.dependencies.model import DeclKind, install_range
from psmb.services.timeouts import (
    INSTALL_RETRY_ATTEMPTS,
    INSTALL_RETRY_DELAY_SECONDS,
    PWSH_TIMEOUT_SECONDS,
)

__all__ = [
    "Installer",
    "ModuleSearchPath",
    "PwshInstaller",
    "install_dependencies",
]

MODULE_PATH_VAR = "PSModulePath"


class Installer(Protocol):
    def install(
        self, name: str, version_range: str | None, destination: Path
    ) -> Result[None, ProcessError]: ...


def _empty_entries() -> list[str]:
    return []


@dataclass
class ModuleSearchPath:
    """Append-only view of the module search path.

    Appends are mirrored into ``environ`` (the process environment by
    default) so child `pwsh` processes see them.
    """

    environ: MutableMapping[str, str] = field(default_factory=lambda: os.environ)
    entries: list[str] = field(default_factory=_empty_entries)

    def __post_init__(self) -> None:
        current = self.environ.get(MODULE_PATH_VAR, "")
        for part in current.split(os.pathsep):
            if part and part not in self.entries:
                self.entries.append(part)

    def append(self, path: Path) -> bool:
        """Add ``path`` at the end. Returns False if it was already present."""
        entry = str(path)
        if entry in self.entries:
            return False
        self.entries.append(entry)
        self.environ[MODULE_PATH_VAR] = os.pathsep.join(self.entries)
        return True


class PwshInstaller:
    """Saves modules from a PSResourceGet repository with `Save-PSResource`."""

    def __init__(self, *, repository: str = "PSGallery", cwd: Path | None = None) -> None:
        self._repository = repository
        self._cwd = cwd or Path.cwd()

    def install(
        self, name: str, version_range: str | None, destination: Path
    ) -> Result[None, ProcessError]:
        destination.mkdir(parents=True, exist_ok=True)
        parts = [
            "Save-PSResource",
            f"-Name {ps_quote(name)}",
            f"-Repository {ps_quote(self._repository)}",
            f"-Path {ps_quote(str(destination))}",
            "-TrustRepository",
            "-ErrorAction Stop",
        ]
        if version_range is not None:
            parts.insert(2, f"-Version {ps_quote(version_range)}")

        result = run_process(
            pwsh_command(" ".join(parts)), cwd=self._cwd, timeout=PWSH_TIMEOUT_SECONDS
        )
        if isinstance(result, Err):
            return result
        return Ok(None)


def install_dependencies(
    decls: list[DeclKind],
    *,
    installer: Installer,
    destination: Path,
    search_path: ModuleSearchPath,
    console: ConsoleProtocol,
    attempts: int = INSTALL_RETRY_ATTEMPTS,
    delay: float = INSTALL_RETRY_DELAY_SECONDS,
) -> Result[list[str], InstallError]:
    """Install ``decls`` in order; stop at the first module that fails.

    Every install retries on its own. Only transient failures are
    retried; anything else fails the module immediately.
    """
    installed: list[str] = []
    for decl in decls:
        version_range = install_range(decl)
        label = decl.name if version_range is None else f"{decl.name} {version_range}"
        console.info(f"installing {label}")

        def on_retry(attempt: int, error: ProcessError) -> None:
            console.warning(f"install {decl.name} failed (attempt {attempt}/{attempts}): {error}")

        result = with_retry(
            lambda: installer.install(decl.name, version_range, destination),
            attempts=attempts,
            delay=delay,
            retry_if=is_transient_pwsh_error,
            on_retry=on_retry,
        )
        if isinstance(result, Err):
            message = result.error.stderr.strip() or str(result.error)
            return Err(InstallError(name=decl.name, message=message, version_range=version_range))

        if search_path.append(destination):
            console.info(f"module path += {destination}")
        installed.append(decl.name)

    return Ok(installed)
