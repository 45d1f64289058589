"""Canonical PowerShell data file (.psd1) writer.

The output is meant to be committed and diffed, so the rendering is fully
deterministic: insertion order is kept, keys at one level are padded to
the same width so the ``=`` signs line up, and the final text is
normalized (no comments, no blank lines, one trailing newline).

    @{
        RootModule    = 'Example.psm1'
        ModuleVersion = '1.2.0'
        Tags          = @(
            'ci'
            'build'
        )
        PrivateData   = @{}
    }
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

__all__ = [
    "INDENT",
    "format_data",
    "format_scalar",
    "normalize_data_text",
    "render_data_file",
    "write_data_file",
]

INDENT = "    "

_BARE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_string(value: str) -> str:
    """Single-quote a string; embedded single quotes are doubled."""
    return "'" + value.replace("'", "''") + "'"


def _format_key(key: str) -> str:
    if _BARE_KEY_RE.match(key):
        return key
    return quote_string(key)


def format_scalar(value: object) -> str:
    """Render a scalar (null, bool, number, string) as a literal token."""
    if value is None:
        return "$null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"cannot render non-finite number {value!r} in a data file")
        return repr(value)
    if isinstance(value, str):
        return quote_string(value)
    raise TypeError(f"cannot render {type(value).__name__} in a data file")


def _format_value(value: object, indent_level: int) -> str:
    if isinstance(value, Mapping):
        return format_data(value, indent_level + 1)  # pyright: ignore[reportUnknownArgumentType]
    if isinstance(value, Sequence) and not isinstance(value, str):
        return _format_list(value, indent_level)  # pyright: ignore[reportUnknownArgumentType]
    return format_scalar(value)


def _format_list(items: Sequence[object], indent_level: int) -> str:
    if not items:
        return "@()"

    indent = INDENT * indent_level
    lines = ["@("]
    for item in items:
        if isinstance(item, Mapping):
            rendered = format_data(item, indent_level + 2)  # pyright: ignore[reportUnknownArgumentType]
        elif isinstance(item, Sequence) and not isinstance(item, str):
            rendered = _format_list(item, indent_level + 1)  # pyright: ignore[reportUnknownArgumentType]
        else:
            rendered = format_scalar(item)
        lines.append(f"{indent}{INDENT}{rendered}")
    lines.append(f"{indent})")
    return "\n".join(lines)


def format_data(data: Mapping[str, object], indent_level: int = 1) -> str:
    """Render an ordered mapping as a ``@{ ... }`` hashtable literal.

    Args:
        data: Mapping of string keys to None, bool, int, float, str,
            nested mappings or lists. Iteration order is output order.
        indent_level: Indentation (in four-space units) of the entries.
            The closing brace sits one level less.

    Returns:
        The hashtable text, without a trailing newline.

    Raises:
        TypeError: If a value has a type the format cannot express.
        ValueError: If a float is infinite or NaN.
    """
    if not data:
        return "@{}"

    keys = {key: _format_key(key) for key in data}
    width = max(len(k) for k in keys.values())
    indent = INDENT * indent_level

    lines = ["@{"]
    for key, value in data.items():
        rendered = _format_value(value, indent_level)
        lines.append(f"{indent}{keys[key].ljust(width)} = {rendered}")
    lines.append(INDENT * (indent_level - 1) + "}")
    return "\n".join(lines)


def normalize_data_text(text: str) -> str:
    """Strip comments and blank lines; end with exactly one newline.

    Quote state is tracked across the whole text, so ``#`` inside a string
    and blank lines inside a multi-line string are preserved.
    """
    out: list[str] = []
    lines: list[str] = []
    quote: str | None = None
    block_comment = False
    line_comment = False
    i = 0
    n = len(text)

    def end_line(inside_string: bool) -> None:
        line = "".join(out)
        out.clear()
        if inside_string:
            lines.append(line)
            return
        line = line.rstrip()
        if line.strip():
            lines.append(line)

    while i < n:
        ch = text[i]

        if ch == "\n":
            line_comment = False
            end_line(quote is not None)
            i += 1
            continue

        if line_comment:
            i += 1
            continue

        if block_comment:
            if text.startswith("#>", i):
                block_comment = False
                i += 2
            else:
                i += 1
            continue

        if quote is None:
            if text.startswith("<#", i):
                block_comment = True
                i += 2
                continue
            if ch == "#":
                line_comment = True
                i += 1
                continue
            if ch in ("'", '"'):
                quote = ch
        elif quote == '"' and ch == "`" and i + 1 < n:
            out.append(ch)
            out.append(text[i + 1])
            i += 2
            continue
        elif ch == quote:
            # A doubled quote closes and reopens, leaving the state unchanged.
            quote = None

        out.append(ch)
        i += 1

    end_line(quote is not None)
    return "\n".join(lines) + "\n"


def render_data_file(data: Mapping[str, object]) -> str:
    """Full file text for ``data``: hashtable plus normalization."""
    return normalize_data_text(format_data(data))


def write_data_file(path: Path, data: Mapping[str, object]) -> Path:
    """Write ``data`` to ``path`` (UTF-8, LF line endings)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_data_file(data), encoding="utf-8", newline="\n")
    return path
