"""Next-version resolution.

One run walks these phases:

    start -> labels_classified -> versions_gathered -> bump_selected
          -> prerelease_computed -> done

and stops early with :class:`Skip` when there is nothing to release.
:func:`resolve` is pure: all channel I/O happened in
:func:`psmb.services.release.gather.gather_context`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from psmb.core.result import Err, Ok, Result
from psmb.services.manifest.compat import ConfigConflictError, check_compatibility
from psmb.services.release.context import Release, ReleaseContext, Resolution, Skip
from psmb.services.release.labels import classify_labels
from psmb.services.release.model import EventDisposition, PullRequestEvent
from psmb.services.release.semver import SemVer

__all__ = [
    "PRERELEASE_NUMBER_WIDTH",
    "event_disposition",
    "next_prerelease_number",
    "prerelease_identifier",
    "prerelease_name",
    "resolve",
]

PRERELEASE_NUMBER_WIDTH = 3

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def prerelease_name(branch: str) -> str:
    """Branch name reduced to what a prerelease label may contain.

    ``feature/Foo-Bar!`` -> ``featurefoobar``
    """
    return _NON_ALNUM_RE.sub("", branch).lower()


def prerelease_identifier(ctx: ReleaseContext) -> str:
    """Branch-derived name, plus the formatted date when configured.

    Lowercased as a whole, so it matches the published prereleases
    it is compared against.
    """
    ident = prerelease_name(ctx.event.head_ref)
    fmt = ctx.settings.date_prerelease_format
    if fmt:
        ident += _NON_ALNUM_RE.sub("", ctx.now.strftime(fmt))
    return ident.lower()


def event_disposition(event: PullRequestEvent, *, prerelease_label: bool) -> EventDisposition:
    if event.merged and event.targets_default_branch:
        return "release"
    if event.closed and not event.merged:
        return "abandoned"
    if prerelease_label and not event.closed:
        return "prerelease"
    return "none"


def _channel_max(versions: Iterable[SemVer], *, core: tuple[int, int, int], identifier: str) -> int:
    best = 0
    for v in versions:
        if v.core != core:
            continue
        pre = v.prerelease.lower()
        if not pre.startswith(identifier):
            continue
        suffix = pre[len(identifier) :]
        if not suffix.isdigit():
            continue
        best = max(best, int(suffix))
    return best


def next_prerelease_number(
    *,
    core: tuple[int, int, int],
    identifier: str,
    registry: Iterable[SemVer],
    vcs: Iterable[SemVer],
) -> int:
    """One above the highest number either channel already used.

    The channels are filtered independently and can drift apart; taking
    the max of both avoids reusing a number published on either side.
    """
    return (
        max(
            _channel_max(registry, core=core, identifier=identifier),
            _channel_max(vcs, core=core, identifier=identifier),
        )
        + 1
    )


def resolve(ctx: ReleaseContext) -> Result[Resolution, ConfigConflictError]:
    """Decide whether and what to release for ``ctx``.

    Returns Ok(Skip) when nothing should be published, Ok(Release) with the
    next version otherwise, and Err(ConfigConflictError) when the module's
    compatibility settings contradict each other.
    """
    settings = ctx.settings
    event = ctx.event
    branch_name = prerelease_name(event.head_ref)

    # labels_classified
    decision = classify_labels(event.labels, settings)
    if decision.ignored:
        return Ok(Skip(reason="ignore label present", phase="labels_classified"))

    disposition = event_disposition(event, prerelease_label=decision.prerelease)
    if disposition == "abandoned":
        return Ok(
            Skip(
                reason="pull request closed without merge",
                phase="labels_classified",
                cleanup=settings.auto_cleanup,
                prerelease_name=branch_name,
            )
        )
    if decision.bump is None:
        return Ok(Skip(reason="no release label", phase="labels_classified"))
    if disposition == "none":
        return Ok(Skip(reason="neither a merge into the default branch nor a prerelease", phase="labels_classified"))

    # versions_gathered
    latest = max(ctx.registry_version.with_prerelease(""), ctx.vcs_version.with_prerelease(""))

    # bump_selected
    version = latest.bump(decision.bump).with_prefix(settings.version_prefix)

    # prerelease_computed
    is_prerelease = disposition == "prerelease"
    if is_prerelease:
        # An empty identifier would turn the prerelease into a stable version.
        if not branch_name:
            return Ok(
                Skip(
                    reason=f"branch '{event.head_ref}' has no characters usable in a prerelease label",
                    phase="prerelease_computed",
                )
            )
        identifier = prerelease_identifier(ctx)
        if settings.incremental_prerelease:
            number = next_prerelease_number(
                core=version.core,
                identifier=identifier,
                registry=ctx.registry_prereleases,
                vcs=ctx.vcs_prereleases,
            )
            identifier += str(number).zfill(PRERELEASE_NUMBER_WIDTH)
        version = version.with_prerelease(identifier)

    if ctx.compatibility is not None:
        conflict = check_compatibility(ctx.compatibility)
        if conflict is not None:
            return Err(conflict)

    return Ok(
        Release(
            version=version,
            is_prerelease=is_prerelease,
            bump=decision.bump,
            target=event.head_ref if is_prerelease else event.default_branch,
            prerelease_name=branch_name,
            cleanup=settings.auto_cleanup and not is_prerelease,
            latest=latest,
        )
    )
