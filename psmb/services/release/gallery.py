"""PowerShell Gallery (or any PSResourceGet repository) through `pwsh`."""

from __future__ import annotations

import os
from pathlib import Path

from psmb.core.result import Err, Ok, Result
from psmb.platform.process import ProcessError
from psmb.platform.process import run as run_process
from psmb.platform.pwsh import is_transient_pwsh_error, ps_quote, pwsh_available, pwsh_command
from psmb.services.release.errors import ReleaseError
from psmb.services.release.semver import SemVer, parse_semver
from psmb.services.timeouts import PWSH_TIMEOUT_SECONDS

__all__ = ["API_KEY_VAR", "DEFAULT_REPOSITORY", "GalleryChannel", "ensure_pwsh_available"]

DEFAULT_REPOSITORY = "PSGallery"

# Handed to the child process only; never put on a command line.
API_KEY_VAR = "PSMB_GALLERY_API_KEY"

_NOT_FOUND_MARKERS = ("could not be found", "not found in repository", "no match was found")

_FIND_SCRIPT = (
    "$ErrorActionPreference = 'Stop'; "
    "Find-PSResource -Name {name} -Repository {repo} -Version '*' -Prerelease | "
    "ForEach-Object {{ if ($_.Prerelease) {{ '{{0}}-{{1}}' -f $_.Version, $_.Prerelease }} "
    "else {{ $_.Version.ToString() }} }}"
)

_PUBLISH_SCRIPT = (
    "$ErrorActionPreference = 'Stop'; "
    "Publish-PSResource -Path {path} -Repository {repo} -ApiKey $env:" + API_KEY_VAR
)


def ensure_pwsh_available() -> Result[None, ReleaseError]:
    if not pwsh_available():
        return Err(
            ReleaseError(
                kind="pwsh_missing",
                message="pwsh: missing",
                hint="Install PowerShell 7: https://aka.ms/powershell",
            )
        )
    return Ok(None)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _NOT_FOUND_MARKERS)


class GalleryChannel:
    """Version lookups and publishing against one repository."""

    def __init__(self, *, workspace_root: Path, repository: str = DEFAULT_REPOSITORY) -> None:
        self._root = workspace_root
        self._repository = repository

    @property
    def repository(self) -> str:
        return self._repository

    def list_versions(self, name: str) -> Result[list[SemVer], ReleaseError]:
        """Every published version of ``name``, prereleases included.

        A module that was never published yields an empty list.
        Versions that are not three-part semver are skipped.
        """
        script = _FIND_SCRIPT.format(name=ps_quote(name), repo=ps_quote(self._repository))
        result = run_process(pwsh_command(script), cwd=self._root, timeout=PWSH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            error = result.error
            if _is_not_found(error):
                return Ok([])
            return Err(
                ReleaseError(
                    kind="lookup_failed",
                    message=f"Find-PSResource {name} failed",
                    hint=error.stderr.strip() or None,
                    transient=is_transient_pwsh_error(error),
                )
            )

        versions: list[SemVer] = []
        for line in result.value.splitlines():
            parsed = parse_semver(line)
            if parsed is not None:
                versions.append(parsed)
        return Ok(versions)

    def publish(self, path: Path, *, api_key: str) -> Result[None, ReleaseError]:
        """Publish the module folder at ``path``; the version comes from its manifest."""
        script = _PUBLISH_SCRIPT.format(path=ps_quote(str(path)), repo=ps_quote(self._repository))
        env = dict(os.environ)
        env[API_KEY_VAR] = api_key
        result = run_process(pwsh_command(script), cwd=self._root, env=env, timeout=PWSH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"Publish-PSResource {path.name} failed",
                    hint=result.error.stderr.strip() or None,
                )
            )
        return Ok(None)
