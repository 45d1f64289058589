from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ConflictReason = Literal[
    "multiple required versions",
    "minimum exceeds required",
    "minimum exceeds maximum",
    "required exceeds maximum",
    "invalid version",
]


@dataclass(frozen=True, slots=True)
class ConflictError:
    """Contradictory version bounds declared for one dependency."""

    name: str
    reason: ConflictReason
    detail: str | None = None

    def pretty(self) -> str:
        msg = f"{self.name}: {self.reason}"
        if self.detail:
            return f"{msg} ({self.detail})"
        return msg


@dataclass(frozen=True, slots=True)
class InstallError:
    """A dependency could not be installed after all retries."""

    name: str
    message: str
    version_range: str | None = None

    def pretty(self) -> str:
        target = self.name if self.version_range is None else f"{self.name} {self.version_range}"
        return f"failed to install {target}: {self.message}"


@dataclass(frozen=True, slots=True)
class RequiresError:
    """A `#Requires` statement that could not be understood."""

    source: str
    line: int
    message: str

    def pretty(self) -> str:
        return f"{self.source}:{self.line}: {self.message}"
