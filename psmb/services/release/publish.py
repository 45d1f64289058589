"""Act on a resolution: publish, tag a release, remove stale prereleases.

With ``whatif`` every step is printed instead of executed.
"""

from __future__ import annotations

from pathlib import Path

from psmb.core.result import Err, Ok, Result
from psmb.core.retry import with_retry
from psmb.datafile.parse import DataFileError
from psmb.output.console import ConsoleProtocol, Style
from psmb.services.manifest.build import update_manifest_version
from psmb.services.release.context import RegistryChannel, Release, VcsChannel
from psmb.services.release.errors import ReleaseError, is_transient
from psmb.services.release.model import VcsRelease
from psmb.services.release.semver import parse_semver
from psmb.services.timeouts import LOOKUP_RETRY_ATTEMPTS, LOOKUP_RETRY_DELAY_SECONDS

__all__ = ["cleanup_prereleases", "publish_release", "stale_prerelease_tags"]


def stale_prerelease_tags(
    releases: list[VcsRelease], *, prerelease_name: str, prefix: str
) -> list[str]:
    """Tags of prereleases that were cut from the branch ``prerelease_name``."""
    if not prerelease_name:
        return []
    tags: list[str] = []
    for release in releases:
        if not release.is_prerelease:
            continue
        parsed = parse_semver(release.tag, prefix=prefix)
        if parsed is None or not parsed.prerelease.lower().startswith(prerelease_name):
            continue
        tags.append(release.tag)
    return tags


def cleanup_prereleases(
    *,
    vcs: VcsChannel,
    prerelease_name: str,
    prefix: str,
    console: ConsoleProtocol,
    whatif: bool,
    attempts: int = LOOKUP_RETRY_ATTEMPTS,
    delay: float = LOOKUP_RETRY_DELAY_SECONDS,
) -> Result[list[str], ReleaseError]:
    """Delete the branch's prereleases (and their tags) from the release list."""
    listed = with_retry(vcs.list_releases, attempts=attempts, delay=delay, retry_if=is_transient)
    if isinstance(listed, Err):
        return listed

    tags = stale_prerelease_tags(listed.value, prerelease_name=prerelease_name, prefix=prefix)
    if not tags:
        console.info(f"no prereleases to clean up for '{prerelease_name}'")
        return Ok([])

    deleted: list[str] = []
    for tag in tags:
        if whatif:
            console.print(f"WhatIf: gh release delete {tag} --cleanup-tag --yes", Style.DIM)
            deleted.append(tag)
            continue
        result = vcs.delete_release(tag)
        if isinstance(result, Err):
            return result
        console.success(f"deleted prerelease {tag}")
        deleted.append(tag)
    return Ok(deleted)


def publish_release(
    *,
    release: Release,
    module_name: str,
    module_dir: Path,
    registry: RegistryChannel,
    vcs: VcsChannel,
    api_key: str | None,
    console: ConsoleProtocol,
    whatif: bool,
) -> Result[str | None, ReleaseError | DataFileError]:
    """Publish ``release``; returns the release URL (None under whatif).

    Order: manifest version, registry, release list, then cleanup of the
    branch's prereleases when ``release.cleanup`` is set. The first
    failing step aborts the rest.
    """
    manifest = module_dir / f"{module_name}.psd1"
    prerelease = release.version.prerelease or None
    tag = release.tag

    if whatif:
        console.print(
            f"WhatIf: set {manifest.name} ModuleVersion={release.version.version}"
            + (f" Prerelease={prerelease}" if prerelease else ""),
            Style.DIM,
        )
        console.print(f"WhatIf: publish {module_dir} to the registry", Style.DIM)
        console.print(
            f"WhatIf: gh release create {tag} --title {tag} --target {release.target}"
            + (" --prerelease" if release.is_prerelease else ""),
            Style.DIM,
        )
        if release.cleanup:
            cleaned = cleanup_prereleases(
                vcs=vcs,
                prerelease_name=release.prerelease_name,
                prefix=release.version.prefix,
                console=console,
                whatif=True,
            )
            if isinstance(cleaned, Err):
                return cleaned
        return Ok(None)

    if not api_key:
        return Err(
            ReleaseError(
                kind="publish_failed",
                message="no registry API key",
                hint="set the API key environment variable or pass --api-key",
            )
        )

    updated = update_manifest_version(manifest, version=release.version.version, prerelease=prerelease)
    if isinstance(updated, Err):
        return updated
    console.success(f"{manifest.name}: {release.version.version}" + (f" ({prerelease})" if prerelease else ""))

    published = registry.publish(module_dir, api_key=api_key)
    if isinstance(published, Err):
        return published
    console.success(f"published {module_name} {release.version}")

    created = vcs.create_release(
        tag=tag, title=tag, target=release.target, prerelease=release.is_prerelease
    )
    if isinstance(created, Err):
        return created
    console.success(f"release {tag}: {created.value}")

    if release.cleanup:
        cleaned = cleanup_prereleases(
            vcs=vcs,
            prerelease_name=release.prerelease_name,
            prefix=release.version.prefix,
            console=console,
            whatif=False,
        )
        if isinstance(cleaned, Err):
            return cleaned

    return Ok(created.value)
