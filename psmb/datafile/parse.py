"""Reader for PowerShell data files (.psd1).

Supports the restricted language data files are allowed to use:
hashtables (``@{}``), arrays (``@()`` and bare comma lists), single and
double quoted strings, numbers, ``$true``/``$false``/``$null`` and
comments. Anything else is reported as a :class:`DataFileError`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from psmb.core.result import Err, Ok, Result

__all__ = ["DataFileError", "parse_data_text", "read_data_file"]


@dataclass(frozen=True, slots=True)
class DataFileError:
    """Error raised while reading a data file."""

    message: str
    line: int | None = None
    path: Path | None = None

    def pretty(self) -> str:
        where = str(self.path) if self.path is not None else "<data>"
        if self.line is not None:
            where = f"{where}:{self.line}"
        return f"{where}: {self.message}"


class _ParseError(Exception):
    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.message = message
        self.line = line


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    line: int
    value: object = None


_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")
_VARIABLE_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")
_CONSTANTS: dict[str, object] = {"true": True, "false": False, "null": None}
_DQ_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "0": "\0", "a": "\a", "b": "\b"}
_PUNCT = {
    "@{": "MAP",
    "@(": "ARRAY",
    "}": "RBRACE",
    ")": "RPAREN",
    "=": "EQ",
    ";": "SEMI",
    ",": "COMMA",
}


def _read_single(text: str, i: int, line: int) -> tuple[str, int, int]:
    chars: list[str] = []
    i += 1
    while i < len(text):
        ch = text[i]
        if ch == "'":
            if text.startswith("''", i):
                chars.append("'")
                i += 2
                continue
            return "".join(chars), i + 1, line
        if ch == "\n":
            line += 1
        chars.append(ch)
        i += 1
    raise _ParseError("unterminated string", line)


def _read_double(text: str, i: int, line: int) -> tuple[str, int, int]:
    chars: list[str] = []
    i += 1
    while i < len(text):
        ch = text[i]
        if ch == "`" and i + 1 < len(text):
            nxt = text[i + 1]
            chars.append(_DQ_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        if ch == '"':
            if text.startswith('""', i):
                chars.append('"')
                i += 2
                continue
            return "".join(chars), i + 1, line
        if ch == "$" and i + 1 < len(text) and (text[i + 1].isalpha() or text[i + 1] in "{("):
            raise _ParseError("variable expansion is not allowed in data files", line)
        if ch == "\n":
            line += 1
        chars.append(ch)
        i += 1
    raise _ParseError("unterminated string", line)


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    line = 1
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == "\n":
            tokens.append(_Token("NEWLINE", ch, line))
            line += 1
            i += 1
            continue
        if ch in " \t\r\ufeff":
            i += 1
            continue
        if text.startswith("<#", i):
            end = text.find("#>", i + 2)
            if end < 0:
                raise _ParseError("unterminated block comment", line)
            line += text.count("\n", i, end)
            i = end + 2
            continue
        if ch == "#":
            end = text.find("\n", i)
            i = n if end < 0 else end
            continue

        two = text[i : i + 2]
        if two in _PUNCT:
            tokens.append(_Token(_PUNCT[two], two, line))
            i += 2
            continue
        if ch in _PUNCT:
            tokens.append(_Token(_PUNCT[ch], ch, line))
            i += 1
            continue

        if ch == "'":
            value, i, end_line = _read_single(text, i, line)
            tokens.append(_Token("STRING", value, line, value))
            line = end_line
            continue
        if ch == '"':
            value, i, end_line = _read_double(text, i, line)
            tokens.append(_Token("STRING", value, line, value))
            line = end_line
            continue

        m = _VARIABLE_RE.match(text, i)
        if m:
            name = m.group(1).lower()
            if name not in _CONSTANTS:
                raise _ParseError(f"variable ${m.group(1)} is not allowed in data files", line)
            tokens.append(_Token("CONST", m.group(0), line, _CONSTANTS[name]))
            i = m.end()
            continue

        m = _NUMBER_RE.match(text, i)
        if m and not _WORD_RE.match(text, m.end()):
            raw = m.group(0)
            number: object = float(raw) if any(c in raw for c in ".eE") else int(raw)
            tokens.append(_Token("NUMBER", raw, line, number))
            i = m.end()
            continue

        m = _WORD_RE.match(text, i)
        if m:
            tokens.append(_Token("WORD", m.group(0), line, m.group(0)))
            i = m.end()
            continue

        raise _ParseError(f"unexpected character {ch!r}", line)

    tokens.append(_Token("EOF", "", line))
    return tokens


class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _next(self) -> _Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, kind: str) -> _Token:
        tok = self._next()
        if tok.kind != kind:
            raise _ParseError(f"expected {kind.lower()}, got {tok.text or tok.kind.lower()!r}", tok.line)
        return tok

    def _skip(self, *kinds: str) -> None:
        while self._peek().kind in kinds:
            self._pos += 1

    def document(self) -> dict[str, object]:
        self._skip("NEWLINE", "SEMI")
        result = self._map()
        self._skip("NEWLINE", "SEMI")
        tok = self._peek()
        if tok.kind != "EOF":
            raise _ParseError(f"unexpected {tok.text!r} after data", tok.line)
        return result

    def _map(self) -> dict[str, object]:
        self._expect("MAP")
        result: dict[str, object] = {}
        while True:
            self._skip("NEWLINE", "SEMI")
            tok = self._peek()
            if tok.kind == "RBRACE":
                self._next()
                return result
            if tok.kind not in ("WORD", "STRING", "NUMBER"):
                raise _ParseError(f"expected key, got {tok.text or tok.kind.lower()!r}", tok.line)
            self._next()
            key = tok.text if tok.kind != "STRING" else str(tok.value)
            self._expect("EQ")
            self._skip("NEWLINE")
            result[key] = self._expression()
            end = self._peek()
            if end.kind not in ("NEWLINE", "SEMI", "RBRACE"):
                raise _ParseError(f"unexpected {end.text!r} after value of {key}", end.line)

    def _array(self) -> list[object]:
        self._expect("ARRAY")
        items: list[object] = []
        while True:
            self._skip("NEWLINE", "SEMI")
            if self._peek().kind == "RPAREN":
                self._next()
                return items
            # A comma list spreads into the array; a single value is one item.
            items.extend(self._items())

    def _items(self) -> list[object]:
        values: list[object] = [self._unary()]
        while self._peek().kind == "COMMA":
            self._next()
            self._skip("NEWLINE")
            values.append(self._unary())
        return values

    def _expression(self) -> object:
        values = self._items()
        return values[0] if len(values) == 1 else values

    def _unary(self) -> object:
        tok = self._peek()
        if tok.kind == "MAP":
            return self._map()
        if tok.kind == "ARRAY":
            return self._array()
        if tok.kind in ("STRING", "NUMBER", "CONST"):
            self._next()
            return tok.value
        raise _ParseError(f"expected value, got {tok.text or tok.kind.lower()!r}", tok.line)


def parse_data_text(text: str) -> Result[dict[str, object], DataFileError]:
    """Parse data file text into an insertion-ordered dict."""
    try:
        return Ok(_Parser(_tokenize(text)).document())
    except _ParseError as e:
        return Err(DataFileError(e.message, line=e.line))


def read_data_file(path: Path) -> Result[dict[str, object], DataFileError]:
    """Read and parse a data file from disk."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        return Err(DataFileError("file not found", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(DataFileError(f"cannot read file: {e}", path=path))

    result = parse_data_text(text)
    if isinstance(result, Err):
        return Err(DataFileError(result.error.message, line=result.error.line, path=path))
    return result
