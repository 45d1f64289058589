from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "gh_missing",
    "pwsh_missing",
    "invalid_event",
    "invalid_input",
    "lookup_failed",
    "publish_failed",
    "release_failed",
    "delete_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Release error payload.

    ``transient`` marks failures (timeouts, 5xx) that a retry may fix.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    transient: bool = False

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def is_transient(error: ReleaseError) -> bool:
    return error.transient
