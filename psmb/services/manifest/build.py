"""Module manifest synthesis.

The manifest is assembled in a fixed key order, mirroring the layout
`New-ModuleManifest` produces, from three layers (highest wins):
the `[module]` settings, the source tree's own `manifest.psd1`, and what
was discovered in the sources. List-valued fields are merged across the
layers, then sorted and de-duplicated so rebuilds are byte-identical.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path

from packaging.version import InvalidVersion, Version

from psmb.core.config import ModuleSettings
from psmb.core.result import Err, Ok, Result
from psmb.core.structured import as_str_dict
from psmb.datafile.parse import DataFileError, read_data_file
from psmb.datafile.serialize import write_data_file
from psmb.services.dependencies.errors import ConflictError
from psmb.services.dependencies.merge import merge_declarations
from psmb.services.dependencies.model import DeclKind, decl_from_value, to_manifest_entry
from psmb.services.manifest.compat import (
    EDITION_CORE,
    EDITION_DESKTOP,
    Compatibility,
    ConfigConflictError,
    check_compatibility,
    default_editions,
)
from psmb.services.manifest.source import ModuleSource

__all__ = [
    "DEFAULT_MODULE_VERSION",
    "DEFAULT_POWERSHELL_VERSION",
    "ManifestBuild",
    "build_manifest",
    "manifest_compatibility",
    "manifest_path",
    "read_manifest_version",
    "update_manifest_version",
    "write_manifest",
]

DEFAULT_MODULE_VERSION = "0.0.1"
DEFAULT_POWERSHELL_VERSION = "5.1"


type ManifestBuild = Result[dict[str, object], ConflictError | ConfigConflictError]


def _str(base: Mapping[str, object], key: str) -> str | None:
    value = base.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _str_list(base: Mapping[str, object], key: str) -> list[str]:
    value = base.get(key)
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if isinstance(v, str) and v.strip()]  # pyright: ignore[reportUnknownVariableType]
    return []


def _sorted_unique(*groups: Iterable[str]) -> list[str]:
    seen: dict[str, str] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item.lower(), item)
    return sorted(seen.values(), key=str.lower)


def _canonical_edition(edition: str) -> str:
    lowered = edition.strip().lower()
    if lowered == EDITION_CORE.lower():
        return EDITION_CORE
    if lowered == EDITION_DESKTOP.lower():
        return EDITION_DESKTOP
    return edition.strip()


def _highest_version(candidates: Iterable[str]) -> str | None:
    best: tuple[Version, str] | None = None
    for raw in candidates:
        try:
            parsed = (Version(raw), raw)
        except InvalidVersion:
            continue
        if best is None or parsed > best:
            best = parsed
    return None if best is None else best[1]


def _psdata(base: Mapping[str, object]) -> dict[str, object]:
    private = as_str_dict(base.get("PrivateData")) or {}
    return as_str_dict(private.get("PSData")) or {}


def _required_modules(
    source: ModuleSource,
) -> Result[list[DeclKind], ConflictError]:
    declared: list[DeclKind] = []
    raw = source.base_manifest.get("RequiredModules")
    items: list[object] = raw if isinstance(raw, list) else [raw] if raw is not None else []  # pyright: ignore[reportUnknownVariableType]
    for item in items:
        decl = decl_from_value(item)
        if decl is not None:
            declared.append(decl)
    declared.extend(source.requires.modules)
    return merge_declarations(declared)


def manifest_compatibility(
    settings: ModuleSettings, source: ModuleSource
) -> tuple[Compatibility, bool]:
    """Editions and minimum version for the manifest.

    Returns the compatibility and whether the editions were declared
    (False means the 5.1 default heuristic filled them in).
    """
    base = source.base_manifest
    powershell_version = _highest_version(
        [
            *([settings.powershell_version] if settings.powershell_version else []),
            *([v] if (v := _str(base, "PowerShellVersion")) else []),
            *source.requires.versions,
        ]
    )
    if powershell_version is None:
        powershell_version = DEFAULT_POWERSHELL_VERSION

    declared = _sorted_unique(
        (_canonical_edition(e) for e in settings.compatible_ps_editions),
        (_canonical_edition(e) for e in _str_list(base, "CompatiblePSEditions")),
        (_canonical_edition(e) for e in source.requires.editions),
    )
    if declared:
        return Compatibility(tuple(declared), powershell_version), True
    return Compatibility(default_editions(powershell_version), powershell_version), False


def build_manifest(source: ModuleSource, settings: ModuleSettings) -> ManifestBuild:
    """Assemble the manifest for ``source``.

    Fails with :class:`ConflictError` when dependency bounds contradict
    each other and with :class:`ConfigConflictError` when the declared
    editions and minimum PowerShell version cannot both hold.
    """
    base = source.base_manifest
    psdata = _psdata(base)

    modules = _required_modules(source)
    if isinstance(modules, Err):
        return modules

    compat, _ = manifest_compatibility(settings, source)
    conflict = check_compatibility(compat)
    if conflict is not None:
        return Err(conflict)

    guid = (
        settings.guid
        or _str(base, "GUID")
        or str(uuid.uuid5(uuid.NAMESPACE_URL, f"psmb:{source.name}"))
    )

    def pick(setting: str | None, key: str) -> str | None:
        return setting or _str(base, key)

    types = [f for f in source.files if f.lower().endswith(".types.ps1xml")]
    formats = [f for f in source.files if f.lower().endswith(".format.ps1xml")]

    manifest: dict[str, object] = {
        "RootModule": _str(base, "RootModule") or f"{source.name}.psm1",
        "ModuleVersion": _str(base, "ModuleVersion") or DEFAULT_MODULE_VERSION,
        "CompatiblePSEditions": list(compat.editions),
        "GUID": guid,
        "Author": pick(settings.author, "Author") or "",
        "CompanyName": pick(settings.company_name, "CompanyName") or "",
        "Copyright": pick(settings.copyright, "Copyright") or "",
        "Description": pick(settings.description, "Description") or "",
        "PowerShellVersion": compat.powershell_version,
        "RequiredModules": [to_manifest_entry(d) for d in modules.value],
        "RequiredAssemblies": _sorted_unique(
            settings.required_assemblies, _str_list(base, "RequiredAssemblies")
        ),
        "ScriptsToProcess": _sorted_unique(_str_list(base, "ScriptsToProcess")),
        "TypesToProcess": _sorted_unique(types, _str_list(base, "TypesToProcess")),
        "FormatsToProcess": _sorted_unique(formats, _str_list(base, "FormatsToProcess")),
        "NestedModules": _sorted_unique(_str_list(base, "NestedModules")),
        "FunctionsToExport": _sorted_unique(source.functions, _str_list(base, "FunctionsToExport")),
        "CmdletsToExport": _sorted_unique(_str_list(base, "CmdletsToExport")),
        "VariablesToExport": _sorted_unique(_str_list(base, "VariablesToExport")),
        "AliasesToExport": _sorted_unique(source.aliases, _str_list(base, "AliasesToExport")),
        "FileList": _sorted_unique(source.files, _str_list(base, "FileList")),
    }

    data: dict[str, object] = {"Tags": _sorted_unique(settings.tags, _str_list(psdata, "Tags"))}
    for key, setting in (
        ("LicenseUri", settings.license_uri),
        ("ProjectUri", settings.project_uri),
        ("IconUri", settings.icon_uri),
        ("ReleaseNotes", settings.release_notes),
        ("Prerelease", None),
    ):
        value = setting or _str(psdata, key)
        if value is not None:
            data[key] = value

    manifest["PrivateData"] = {"PSData": data}
    return Ok(manifest)


def manifest_path(output_root: Path, name: str) -> Path:
    return output_root / name / f"{name}.psd1"


def write_manifest(path: Path, manifest: Mapping[str, object]) -> Path:
    return write_data_file(path, manifest)


def read_manifest_version(path: Path) -> Result[str, DataFileError]:
    """ModuleVersion of an existing manifest, with `-prerelease` if set."""
    parsed = read_data_file(path)
    if isinstance(parsed, Err):
        return parsed

    version = _str(parsed.value, "ModuleVersion")
    if version is None:
        return Err(DataFileError("ModuleVersion missing", path=path))
    prerelease = _str(_psdata(parsed.value), "Prerelease")
    return Ok(f"{version}-{prerelease}" if prerelease else version)


def update_manifest_version(
    path: Path, *, version: str, prerelease: str | None
) -> Result[Path, DataFileError]:
    """Rewrite ModuleVersion and PSData.Prerelease in place.

    Other keys keep their order; ``Prerelease`` is removed when
    ``prerelease`` is empty.
    """
    parsed = read_data_file(path)
    if isinstance(parsed, Err):
        return parsed

    manifest = parsed.value
    if "ModuleVersion" in manifest:
        manifest["ModuleVersion"] = version
    else:
        manifest = {"ModuleVersion": version, **manifest}

    private = as_str_dict(manifest.get("PrivateData"))
    if private is None:
        private = {}
        manifest["PrivateData"] = private
    psdata = as_str_dict(private.get("PSData"))
    if psdata is None:
        psdata = {}
        private["PSData"] = psdata

    if prerelease:
        psdata["Prerelease"] = prerelease
    else:
        psdata.pop("Prerelease", None)

    return Ok(write_data_file(path, manifest))
