"""Collapse repeated dependency declarations into one entry per module.

The same module is often required by several source files, each with its
own bounds. Before the manifest is written (and before anything is
installed) the declarations are grouped by name and reduced to the
tightest consistent bounds, or rejected with a :class:`ConflictError`.
"""

from __future__ import annotations

from collections.abc import Iterable

from packaging.version import InvalidVersion, Version

from psmb.core.result import Err, Ok, Result
from psmb.services.dependencies.errors import ConflictError
from psmb.services.dependencies.model import DeclKind, ModuleName, ModuleSpec, as_spec

__all__ = ["group_declarations", "merge_declarations", "merge_group"]


def group_declarations(decls: Iterable[DeclKind]) -> dict[str, list[DeclKind]]:
    """Group by exact module name, in first-seen order."""
    groups: dict[str, list[DeclKind]] = {}
    for decl in decls:
        groups.setdefault(decl.name, []).append(decl)
    return groups


def _parse(name: str, raw: str) -> Result[tuple[Version, str], ConflictError]:
    try:
        return Ok((Version(raw), raw))
    except InvalidVersion:
        return Err(ConflictError(name=name, reason="invalid version", detail=raw))


def _parse_all(name: str, raws: Iterable[str]) -> Result[list[tuple[Version, str]], ConflictError]:
    out: list[tuple[Version, str]] = []
    for raw in raws:
        parsed = _parse(name, raw)
        if isinstance(parsed, Err):
            return parsed
        out.append(parsed.value)
    return Ok(out)


def merge_group(name: str, group: list[DeclKind]) -> Result[DeclKind, ConflictError]:
    """Merge the declarations of one module.

    The highest minimum and the lowest maximum win. Ties between spellings
    of the same version ("1.0" vs "1.0.0") are broken on the text so the
    result does not depend on declaration order.
    """
    specs = [as_spec(d) for d in group]

    exacts = sorted({s.exact for s in specs if s.exact is not None})
    if len(exacts) > 1:
        return Err(
            ConflictError(
                name=name,
                reason="multiple required versions",
                detail=", ".join(exacts),
            )
        )

    minimums = _parse_all(name, (s.minimum for s in specs if s.minimum is not None))
    if isinstance(minimums, Err):
        return minimums
    maximums = _parse_all(name, (s.maximum for s in specs if s.maximum is not None))
    if isinstance(maximums, Err):
        return maximums

    exact: tuple[Version, str] | None = None
    if exacts:
        parsed_exact = _parse(name, exacts[0])
        if isinstance(parsed_exact, Err):
            return parsed_exact
        exact = parsed_exact.value

    minimum = max(minimums.value) if minimums.value else None
    maximum = min(maximums.value) if maximums.value else None

    if exact is not None and minimum is not None and exact[0] < minimum[0]:
        return Err(
            ConflictError(
                name=name,
                reason="minimum exceeds required",
                detail=f"minimum {minimum[1]} > required {exact[1]}",
            )
        )
    if minimum is not None and maximum is not None and minimum[0] > maximum[0]:
        return Err(
            ConflictError(
                name=name,
                reason="minimum exceeds maximum",
                detail=f"minimum {minimum[1]} > maximum {maximum[1]}",
            )
        )
    if exact is not None and maximum is not None and exact[0] > maximum[0]:
        return Err(
            ConflictError(
                name=name,
                reason="required exceeds maximum",
                detail=f"required {exact[1]} > maximum {maximum[1]}",
            )
        )

    if exact is None and minimum is None and maximum is None:
        return Ok(ModuleName(name))

    return Ok(
        ModuleSpec(
            name=name,
            exact=exact[1] if exact is not None else None,
            minimum=minimum[1] if minimum is not None else None,
            maximum=maximum[1] if maximum is not None else None,
        )
    )


def merge_declarations(decls: Iterable[DeclKind]) -> Result[list[DeclKind], ConflictError]:
    """Merge all declarations; one entry per module, first-seen order.

    Fails on the first module whose bounds contradict each other.
    """
    merged: list[DeclKind] = []
    for name, group in group_declarations(decls).items():
        result = merge_group(name, group)
        if isinstance(result, Err):
            return result
        merged.append(result.value)
    return Ok(merged)
