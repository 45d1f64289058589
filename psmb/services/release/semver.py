from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from functools import total_ordering

from psmb.services.release.model import ReleaseBump

__all__ = ["SemVer", "ZERO", "parse_semver"]

_SEMVER_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<prerelease>[0-9A-Za-z][0-9A-Za-z.\-]*))?"
    r"(?:\+[0-9A-Za-z.\-]+)?$"
)


def _prerelease_key(prerelease: str) -> tuple[tuple[int, int, str], ...]:
    # SemVer 2.0: numeric identifiers sort numerically and below alphanumerics.
    out: list[tuple[int, int, str]] = []
    for ident in prerelease.split("."):
        if ident.isdigit():
            out.append((0, int(ident), ""))
        else:
            out.append((1, 0, ident))
    return tuple(out)


@total_ordering
@dataclass(frozen=True, slots=True)
class SemVer:
    """A semantic version with an optional tag prefix (``v1.2.3``).

    Ordering looks at (major, minor, patch) first; a version without a
    prerelease is greater than the same version with one. The prefix is
    presentation only and takes no part in comparisons.
    """

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    prefix: str = field(default="", compare=False)

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self) -> tuple[tuple[int, int, int], int, tuple[tuple[int, int, str], ...]]:
        if not self.prerelease:
            return (self.core, 1, ())
        return (self.core, 0, _prerelease_key(self.prerelease))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def bump(self, kind: ReleaseBump) -> SemVer:
        """Next version for ``kind``; the prerelease is dropped."""
        match kind:
            case "major":
                return replace(self, major=self.major + 1, minor=0, patch=0, prerelease="")
            case "minor":
                return replace(self, minor=self.minor + 1, patch=0, prerelease="")
            case "patch":
                return replace(self, patch=self.patch + 1, prerelease="")
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def with_prerelease(self, prerelease: str) -> SemVer:
        return replace(self, prerelease=prerelease)

    def with_prefix(self, prefix: str) -> SemVer:
        return replace(self, prefix=prefix)

    @property
    def version(self) -> str:
        """``major.minor.patch`` only, as a module manifest wants it."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        if self.prerelease:
            return f"{self.prefix}{self.version}-{self.prerelease}"
        return f"{self.prefix}{self.version}"


ZERO = SemVer(0, 0, 0)


def parse_semver(text: str, *, prefix: str = "") -> SemVer | None:
    """Parse ``1.2.3``, ``1.2.3-beta001`` or a prefixed tag like ``v1.2.3``.

    When ``prefix`` is given it is stripped (case-insensitively) if present;
    a version without it is still accepted. Returns None for anything that
    is not three numeric components.
    """
    raw = text.strip()
    used_prefix = ""
    if prefix and raw.lower().startswith(prefix.lower()):
        used_prefix = raw[: len(prefix)]
        raw = raw[len(prefix) :]

    m = _SEMVER_RE.match(raw)
    if m is None:
        return None
    return SemVer(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=m.group("prerelease") or "",
        prefix=used_prefix,
    )
