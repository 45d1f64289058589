"""Read a module source tree into a :class:`ModuleSource`."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from psmb.core.result import Err, Ok, Result
from psmb.datafile.parse import DataFileError, read_data_file
from psmb.services.dependencies.errors import RequiresError
from psmb.services.dependencies.requires import RequiresStatements, collect_requires

__all__ = ["ModuleSource", "SourceError", "read_module_source"]

SCRIPT_SUFFIXES = (".ps1", ".psm1")
PUBLIC_DIR = "public"
SOURCE_MANIFEST = "manifest.psd1"

_FUNCTION_RE = re.compile(r"^function[ \t]+(?P<name>[A-Za-z_][\w-]*)", re.IGNORECASE | re.MULTILINE)
_ALIAS_ATTR_RE = re.compile(r"\[Alias\((?P<names>[^)]*)\)\]", re.IGNORECASE)
_QUOTED_RE = re.compile(r"""['"]([^'"]+)['"]""")


@dataclass(frozen=True, slots=True)
class SourceError:
    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ModuleSource:
    name: str
    root: Path
    files: tuple[str, ...]
    functions: tuple[str, ...]
    aliases: tuple[str, ...]
    requires: RequiresStatements
    base_manifest: dict[str, object]


def _is_public(rel: Path) -> bool:
    return any(part.lower() == PUBLIC_DIR for part in rel.parts[:-1])


def _exports(text: str) -> tuple[list[str], list[str]]:
    functions = [m.group("name") for m in _FUNCTION_RE.finditer(text)]
    aliases: list[str] = []
    for m in _ALIAS_ATTR_RE.finditer(text):
        aliases.extend(_QUOTED_RE.findall(m.group("names")))
    return functions, aliases


def read_module_source(
    root: Path, *, name: str
) -> Result[ModuleSource, SourceError | RequiresError | DataFileError]:
    """Walk ``root`` and collect what the manifest needs.

    Functions defined at the top of files under a ``public`` folder are
    exported, along with their ``[Alias()]`` names. An optional
    ``manifest.psd1`` at the root seeds the manifest.
    """
    if not root.is_dir():
        return Err(SourceError(f"source directory not found: {root}", path=root))

    files: list[str] = []
    scripts: list[tuple[str, str]] = []
    functions: list[str] = []
    aliases: list[str] = []

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if rel.as_posix() == SOURCE_MANIFEST:
            continue
        files.append(rel.as_posix())

        if path.suffix.lower() not in SCRIPT_SUFFIXES:
            continue
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            return Err(SourceError(f"cannot read {rel.as_posix()}: {e}", path=path))

        scripts.append((rel.as_posix(), text))
        if _is_public(rel):
            found_functions, found_aliases = _exports(text)
            functions.extend(found_functions)
            aliases.extend(found_aliases)

    requires = collect_requires(scripts)
    if isinstance(requires, Err):
        return requires

    base: dict[str, object] = {}
    manifest_path = root / SOURCE_MANIFEST
    if manifest_path.exists():
        parsed = read_data_file(manifest_path)
        if isinstance(parsed, Err):
            return parsed
        base = parsed.value

    return Ok(
        ModuleSource(
            name=name,
            root=root,
            files=tuple(files),
            functions=tuple(functions),
            aliases=tuple(aliases),
            requires=requires.value,
            base_manifest=base,
        )
    )
