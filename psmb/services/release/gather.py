"""Collect version state from the registry and the release list.

Each channel is read on its own. A channel that cannot be read, even
after retries, counts as "nothing published yet" (0.0.0) with a warning:
a module without prior releases is a normal state, not a failure.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from psmb.core.config import ReleaseSettings
from psmb.core.result import Err
from psmb.core.retry import with_retry
from psmb.output.console import ConsoleProtocol
from psmb.services.manifest.compat import Compatibility
from psmb.services.release.context import RegistryChannel, ReleaseContext, VcsChannel
from psmb.services.release.errors import ReleaseError, is_transient
from psmb.services.release.model import PullRequestEvent, VcsRelease
from psmb.services.release.semver import ZERO, SemVer, parse_semver
from psmb.services.timeouts import LOOKUP_RETRY_ATTEMPTS, LOOKUP_RETRY_DELAY_SECONDS

__all__ = ["gather_context", "latest_registry_version", "latest_vcs_version"]


def latest_registry_version(versions: list[SemVer]) -> SemVer:
    stable = [v for v in versions if not v.is_prerelease]
    return max(stable) if stable else ZERO


def latest_vcs_version(releases: list[VcsRelease], *, prefix: str) -> SemVer:
    """Version of the release flagged latest, 0.0.0 when there is none."""
    for release in releases:
        if not release.is_latest:
            continue
        parsed = parse_semver(release.tag, prefix=prefix)
        if parsed is not None:
            return parsed
    return ZERO


def _vcs_prereleases(releases: list[VcsRelease], *, prefix: str) -> tuple[SemVer, ...]:
    out: list[SemVer] = []
    for release in releases:
        if not release.is_prerelease:
            continue
        parsed = parse_semver(release.tag, prefix=prefix)
        if parsed is not None and parsed.is_prerelease:
            out.append(parsed)
    return tuple(out)


def gather_context(
    *,
    module_name: str,
    event: PullRequestEvent,
    settings: ReleaseSettings,
    registry: RegistryChannel,
    vcs: VcsChannel,
    console: ConsoleProtocol,
    manifest_version: str | None = None,
    compatibility: Compatibility | None = None,
    now: datetime | None = None,
    attempts: int = LOOKUP_RETRY_ATTEMPTS,
    delay: float = LOOKUP_RETRY_DELAY_SECONDS,
) -> ReleaseContext:
    def warn_retry(channel: str) -> Callable[[int, ReleaseError], None]:
        def on_retry(attempt: int, error: ReleaseError) -> None:
            console.warning(f"{channel} lookup failed (attempt {attempt}/{attempts}): {error.pretty()}")

        return on_retry

    registry_result = with_retry(
        lambda: registry.list_versions(module_name),
        attempts=attempts,
        delay=delay,
        retry_if=is_transient,
        on_retry=warn_retry("registry"),
    )
    registry_versions: list[SemVer] = []
    if isinstance(registry_result, Err):
        console.warning(f"registry unavailable, assuming {ZERO}: {registry_result.error.pretty()}")
    else:
        registry_versions = registry_result.value

    vcs_result = with_retry(
        vcs.list_releases,
        attempts=attempts,
        delay=delay,
        retry_if=is_transient,
        on_retry=warn_retry("release list"),
    )
    releases: list[VcsRelease] = []
    if isinstance(vcs_result, Err):
        console.warning(f"release list unavailable, assuming {ZERO}: {vcs_result.error.pretty()}")
    else:
        releases = vcs_result.value

    registry_version = latest_registry_version(registry_versions)
    vcs_version = latest_vcs_version(releases, prefix=settings.version_prefix)

    console.info(f"registry latest: {registry_version}")
    console.info(f"release list latest: {vcs_version}")
    if manifest_version is not None:
        console.info(f"manifest version: {manifest_version} (not used for resolution)")

    return ReleaseContext(
        module_name=module_name,
        event=event,
        settings=settings,
        registry_version=registry_version,
        vcs_version=vcs_version,
        registry_prereleases=tuple(v for v in registry_versions if v.is_prerelease),
        vcs_prereleases=_vcs_prereleases(releases, prefix=settings.version_prefix),
        now=now or datetime.now(UTC),
        manifest_version=manifest_version,
        compatibility=compatibility,
    )
