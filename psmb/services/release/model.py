from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseBump = Literal["major", "minor", "patch"]

# Phases of one resolution run, in order.
ResolvePhase = Literal[
    "start",
    "labels_classified",
    "versions_gathered",
    "bump_selected",
    "prerelease_computed",
    "done",
]

# What the pull request event asks for.
EventDisposition = Literal["release", "prerelease", "abandoned", "none"]

PRERELEASE_LABEL = "prerelease"


@dataclass(frozen=True, slots=True)
class PullRequestEvent:
    """The parts of a GitHub `pull_request` event psmb looks at."""

    number: int
    labels: tuple[str, ...]
    merged: bool
    closed: bool
    base_ref: str
    head_ref: str
    default_branch: str

    @property
    def targets_default_branch(self) -> bool:
        return self.base_ref == self.default_branch


@dataclass(frozen=True, slots=True)
class VcsRelease:
    """One entry of `gh release list`."""

    tag: str
    name: str
    is_prerelease: bool
    is_latest: bool
    created_at: str | None = None
    published_at: str | None = None
