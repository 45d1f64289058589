"""PowerShell edition / version compatibility rules."""

from __future__ import annotations

from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

__all__ = [
    "Compatibility",
    "ConfigConflictError",
    "DESKTOP_MAX_VERSION",
    "check_compatibility",
    "default_editions",
    "exceeds_desktop",
]

# Windows PowerShell (Desktop edition) stops at 5.1.
DESKTOP_MAX_VERSION = Version("5.1")

EDITION_CORE = "Core"
EDITION_DESKTOP = "Desktop"


@dataclass(frozen=True, slots=True)
class ConfigConflictError:
    """Two settings that cannot both hold."""

    keys: tuple[str, ...]
    message: str

    def pretty(self) -> str:
        return f"{' / '.join(self.keys)}: {self.message}"


@dataclass(frozen=True, slots=True)
class Compatibility:
    editions: tuple[str, ...] = ()
    powershell_version: str | None = None


def exceeds_desktop(powershell_version: str | None) -> bool:
    if powershell_version is None:
        return False
    try:
        return Version(powershell_version) > DESKTOP_MAX_VERSION
    except InvalidVersion:
        return False


def default_editions(powershell_version: str | None) -> tuple[str, ...]:
    """Editions to declare when the sources declare none.

    Core only when the minimum version is above 5.1, both otherwise.
    """
    if exceeds_desktop(powershell_version):
        return (EDITION_CORE,)
    return (EDITION_CORE, EDITION_DESKTOP)


def check_compatibility(compat: Compatibility) -> ConfigConflictError | None:
    """Return the conflict in ``compat``, or None when it is consistent."""
    if compat.powershell_version is not None:
        try:
            Version(compat.powershell_version)
        except InvalidVersion:
            return ConfigConflictError(
                keys=("PowerShellVersion",),
                message=f"invalid version {compat.powershell_version!r}",
            )

    editions = {e.lower() for e in compat.editions}
    unknown = sorted(editions - {EDITION_CORE.lower(), EDITION_DESKTOP.lower()})
    if unknown:
        return ConfigConflictError(
            keys=("CompatiblePSEditions",),
            message=f"unknown edition(s): {', '.join(unknown)}",
        )

    if EDITION_DESKTOP.lower() in editions and exceeds_desktop(compat.powershell_version):
        return ConfigConflictError(
            keys=("CompatiblePSEditions", "PowerShellVersion"),
            message=(
                f"Desktop edition requires PowerShellVersion <= {DESKTOP_MAX_VERSION}, "
                f"got {compat.powershell_version}"
            ),
        )
    return None
