from __future__ import annotations

from dataclasses import dataclass

from psmb.services.dependencies.ranges import convert_version_spec


@dataclass(frozen=True, slots=True)
class ModuleName:
    """A dependency declared by name only."""

    name: str


@dataclass(frozen=True, slots=True)
class ModuleSpec:
    """A dependency with at least one declared bound.

    ``exact`` maps to RequiredVersion, ``minimum`` to ModuleVersion and
    ``maximum`` to MaximumVersion in a module manifest.
    """

    name: str
    exact: str | None = None
    minimum: str | None = None
    maximum: str | None = None

    @property
    def has_bounds(self) -> bool:
        return any(v is not None for v in (self.exact, self.minimum, self.maximum))


DeclKind = ModuleName | ModuleSpec


def decl_name(decl: DeclKind) -> str:
    return decl.name


def as_spec(decl: DeclKind) -> ModuleSpec:
    match decl:
        case ModuleName(name=name):
            return ModuleSpec(name=name)
        case ModuleSpec():
            return decl


def install_range(decl: DeclKind) -> str | None:
    """Version range to hand to the installer, None when unconstrained."""
    spec = as_spec(decl)
    return convert_version_spec(minimum=spec.minimum, maximum=spec.maximum, exact=spec.exact)


def to_manifest_entry(decl: DeclKind) -> str | dict[str, object]:
    """Render a declaration the way `RequiredModules` expects it."""
    match decl:
        case ModuleName(name=name):
            return name
        case ModuleSpec(name=name, exact=exact, minimum=minimum, maximum=maximum):
            entry: dict[str, object] = {"ModuleName": name}
            if exact is not None:
                # PowerShell rejects RequiredVersion next to the other bounds.
                entry["RequiredVersion"] = exact
                return entry
            if minimum is not None:
                entry["ModuleVersion"] = minimum
            if maximum is not None:
                entry["MaximumVersion"] = maximum
            if len(entry) == 1:
                return name
            return entry


def decl_from_value(value: object) -> DeclKind | None:
    """Read a `RequiredModules` item from a parsed manifest.

    Accepts a bare module name or a hashtable with ModuleName and any of
    RequiredVersion / ModuleVersion / MaximumVersion (keys are matched
    case-insensitively). Returns None for anything else.
    """
    if isinstance(value, str):
        name = value.strip()
        return ModuleName(name) if name else None
    if not isinstance(value, dict):
        return None

    table = {str(k).lower(): v for k, v in value.items()}  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]
    name = table.get("modulename")
    if not isinstance(name, str) or not name.strip():
        return None

    def bound(key: str) -> str | None:
        raw = table.get(key)
        if raw is None:
            return None
        return str(raw).strip() or None

    spec = ModuleSpec(
        name=name.strip(),
        exact=bound("requiredversion"),
        minimum=bound("moduleversion"),
        maximum=bound("maximumversion"),
    )
    return spec if spec.has_bounds else ModuleName(spec.name)
