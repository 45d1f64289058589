from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from psmb.core.config import ReleaseSettings
from psmb.services.release.model import PRERELEASE_LABEL, ReleaseBump

__all__ = ["LabelDecision", "classify_labels"]


@dataclass(frozen=True, slots=True)
class LabelDecision:
    """How a pull request's labels steer the release.

    ``bump`` is None when nothing should be released (ignore label, or no
    bump label with auto patching off).
    """

    bump: ReleaseBump | None
    ignored: bool
    auto_patch: bool
    prerelease: bool


def _matches(labels: set[str], configured: Iterable[str]) -> bool:
    return any(c.casefold() in labels for c in configured)


def classify_labels(labels: Iterable[str], settings: ReleaseSettings) -> LabelDecision:
    """Pick the bump for a set of labels (compared case-insensitively).

    An ignore label wins over everything. Otherwise major > minor > patch,
    then patch again when auto patching is on.
    """
    present = {label.strip().casefold() for label in labels if label.strip()}
    prerelease = PRERELEASE_LABEL in present

    if _matches(present, settings.ignore_labels):
        return LabelDecision(bump=None, ignored=True, auto_patch=False, prerelease=prerelease)
    if _matches(present, settings.major_labels):
        return LabelDecision(bump="major", ignored=False, auto_patch=False, prerelease=prerelease)
    if _matches(present, settings.minor_labels):
        return LabelDecision(bump="minor", ignored=False, auto_patch=False, prerelease=prerelease)
    if _matches(present, settings.patch_labels):
        return LabelDecision(bump="patch", ignored=False, auto_patch=False, prerelease=prerelease)
    if settings.auto_patching:
        return LabelDecision(bump="patch", ignored=False, auto_patch=True, prerelease=prerelease)
    return LabelDecision(bump=None, ignored=False, auto_patch=False, prerelease=prerelease)
