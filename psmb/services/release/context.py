"""Inputs and outcomes of one release resolution run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from psmb.core.config import ReleaseSettings
from psmb.core.result import Result
from psmb.services.manifest.compat import Compatibility
from psmb.services.release.errors import ReleaseError
from psmb.services.release.model import PullRequestEvent, ReleaseBump, ResolvePhase, VcsRelease
from psmb.services.release.semver import SemVer

__all__ = [
    "RegistryChannel",
    "Release",
    "ReleaseContext",
    "Resolution",
    "Skip",
    "VcsChannel",
]


class RegistryChannel(Protocol):
    def list_versions(self, name: str) -> Result[list[SemVer], ReleaseError]: ...

    def publish(self, path: Path, *, api_key: str) -> Result[None, ReleaseError]: ...


class VcsChannel(Protocol):
    def list_releases(self) -> Result[list[VcsRelease], ReleaseError]: ...

    def create_release(
        self, *, tag: str, title: str, target: str, prerelease: bool
    ) -> Result[str, ReleaseError]: ...

    def delete_release(self, tag: str) -> Result[None, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything :func:`resolve` needs, gathered up front.

    ``manifest_version`` is informational; it never drives the result.
    """

    module_name: str
    event: PullRequestEvent
    settings: ReleaseSettings
    registry_version: SemVer
    vcs_version: SemVer
    registry_prereleases: tuple[SemVer, ...]
    vcs_prereleases: tuple[SemVer, ...]
    now: datetime
    manifest_version: str | None = None
    compatibility: Compatibility | None = None


@dataclass(frozen=True, slots=True)
class Skip:
    """No version is produced. Not an error.

    ``cleanup`` asks the caller to delete prereleases named after
    ``prerelease_name`` (a pull request closed without merging).
    """

    reason: str
    phase: ResolvePhase
    cleanup: bool = False
    prerelease_name: str | None = None


@dataclass(frozen=True, slots=True)
class Release:
    version: SemVer
    is_prerelease: bool
    bump: ReleaseBump
    target: str
    prerelease_name: str
    cleanup: bool
    latest: SemVer
    phase: ResolvePhase = "done"

    @property
    def tag(self) -> str:
        return str(self.version)


type Resolution = Skip | Release
