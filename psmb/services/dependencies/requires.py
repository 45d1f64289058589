"""Read `#Requires` statements from PowerShell sources.

Only the parameters that feed the manifest are kept:

    #Requires -Modules PSReadLine, @{ ModuleName = 'Pester'; ModuleVersion = '5.0' }
    #Requires -Version 7.2
    #Requires -PSEdition Core

Declarations from many files are folded into one immutable
:class:`RequiresStatements`; merging conflicting bounds is left to
:mod:`psmb.services.dependencies.merge`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from psmb.core.result import Err, Ok, Result
from psmb.datafile.parse import parse_data_text
from psmb.services.dependencies.errors import RequiresError
from psmb.services.dependencies.model import DeclKind, ModuleName, ModuleSpec

__all__ = ["RequiresStatements", "collect_requires", "scan_requires"]

_REQUIRES_RE = re.compile(r"^[ \t]*#requires[ \t]+(?P<args>.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True, slots=True)
class RequiresStatements:
    modules: tuple[DeclKind, ...] = ()
    versions: tuple[str, ...] = ()
    editions: tuple[str, ...] = ()

    def merged_with(self, other: RequiresStatements) -> RequiresStatements:
        return RequiresStatements(
            modules=self.modules + other.modules,
            versions=self.versions + other.versions,
            editions=self.editions + other.editions,
        )


def _split_top_level(text: str, separators: str) -> list[str]:
    """Split on ``separators`` outside quotes and braces."""
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None
    for ch in text:
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch in "{(":
            depth += 1
        elif ch in "})":
            depth -= 1
        elif depth == 0 and ch in separators:
            parts.append("".join(buf))
            buf.clear()
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts


def _parameters(args: str) -> list[tuple[str, str]]:
    """Split `-Name value -Other value` into (name, value) pairs."""
    params: list[tuple[str, str]] = []
    for chunk in _split_top_level(" " + args, " \t"):
        token = chunk.strip()
        if not token:
            continue
        if token.startswith("-") and len(token) > 1 and token[1].isalpha():
            params.append((token[1:].lower(), ""))
            continue
        if not params:
            params.append(("", token))
            continue
        name, value = params[-1]
        params[-1] = (name, f"{value} {token}".strip())
    return params


def _unquote(value: str) -> str:
    v = value.strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
        return v[1:-1]
    return v


def _module_from_table(item: str, *, source: str, line: int) -> Result[DeclKind, RequiresError]:
    parsed = parse_data_text(item)
    if isinstance(parsed, Err):
        return Err(RequiresError(source, line, f"invalid module specification: {parsed.error.message}"))

    table = {k.lower(): v for k, v in parsed.value.items()}
    name = table.get("modulename")
    if not isinstance(name, str) or not name.strip():
        return Err(RequiresError(source, line, "module specification without ModuleName"))

    def bound(key: str) -> str | None:
        value = table.get(key)
        if value is None:
            return None
        return str(value).strip() or None

    spec = ModuleSpec(
        name=name.strip(),
        exact=bound("requiredversion"),
        minimum=bound("moduleversion"),
        maximum=bound("maximumversion"),
    )
    if not spec.has_bounds:
        return Ok(ModuleName(spec.name))
    return Ok(spec)


def _modules(value: str, *, source: str, line: int) -> Result[list[DeclKind], RequiresError]:
    out: list[DeclKind] = []
    for raw in _split_top_level(value, ","):
        item = raw.strip()
        if not item:
            continue
        if item.startswith("@{"):
            decl = _module_from_table(item, source=source, line=line)
            if isinstance(decl, Err):
                return decl
            out.append(decl.value)
            continue
        out.append(ModuleName(_unquote(item)))
    return Ok(out)


def scan_requires(text: str, *, source: str = "<text>") -> Result[RequiresStatements, RequiresError]:
    """Extract module, version and edition requirements from one file."""
    modules: list[DeclKind] = []
    versions: list[str] = []
    editions: list[str] = []

    for m in _REQUIRES_RE.finditer(text):
        line = text.count("\n", 0, m.start()) + 1
        for name, value in _parameters(m.group("args")):
            match name:
                case "modules":
                    found = _modules(value, source=source, line=line)
                    if isinstance(found, Err):
                        return found
                    modules.extend(found.value)
                case "version":
                    if value:
                        versions.append(_unquote(value))
                case "psedition":
                    editions.extend(_unquote(e) for e in _split_top_level(value, ",") if e.strip())
                case _:
                    # -RunAsAdministrator, -PSSnapin, -ShellId: not manifest data
                    continue

    return Ok(
        RequiresStatements(
            modules=tuple(modules),
            versions=tuple(versions),
            editions=tuple(editions),
        )
    )


def collect_requires(
    sources: Iterable[tuple[str, str]],
) -> Result[RequiresStatements, RequiresError]:
    """Fold `#Requires` data over (source name, text) pairs, in order."""
    acc = RequiresStatements()
    for source, text in sources:
        found = scan_requires(text, source=source)
        if isinstance(found, Err):
            return found
        acc = acc.merged_with(found.value)
    return Ok(acc)
