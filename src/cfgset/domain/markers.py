"""Setter marker comments and the line scanning needed to place them.

A field bound to a setter carries a trailing line comment of the exact form
``# {"$openapi":"<name>"}``. Markers are spliced into the source text
rather than re-emitted through a YAML dumper, so every byte outside the
annotated line survives unchanged.

Lines handled here come from ``text.split("\\n")``: they have no ``\\n``
but may end with ``\\r``.
"""

from __future__ import annotations

import json

from cfgset.domain.errors import MalformedInputError

MARKER_KEY = "$openapi"

_TOKEN_BOUNDARY = " \t[{,:"


def format_marker(name: str) -> str:
    """Return the marker comment for setter *name* (including ``# ``)."""
    return "# " + json.dumps({MARKER_KEY: name}, separators=(",", ":"))


def parse_marker(comment: str) -> str | None:
    """Return the setter name bound by *comment*, or None if it is not a marker."""
    body = comment.strip().lstrip("#").strip()
    if not body.startswith("{"):
        return None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get(MARKER_KEY), str):
        return payload[MARKER_KEY]
    return None


# ---------------------------------------------------------------------------
# Line scanning
# ---------------------------------------------------------------------------


def _body(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def _starts_token(text: str, i: int, origin: int) -> bool:
    return i == origin or text[i - 1] in _TOKEN_BOUNDARY


def _quote_close(text: str, start: int, quote: str) -> int | None:
    """Index just past the closing *quote* at or after *start*, or None."""
    i = start
    while i < len(text):
        ch = text[i]
        if quote == '"' and ch == "\\":
            i += 2
            continue
        if ch == quote:
            if quote == "'" and text[i + 1 : i + 2] == "'":
                i += 2
                continue
            return i + 1
        i += 1
    return None


def content_end(text: str, col: int) -> int:
    """Column where meaningful content ends on *text*, scanning from *col*.

    Trailing comments and trailing whitespace are excluded. Quoted runs are
    skipped so a ``#`` inside quotes is not mistaken for a comment.
    """
    i = col
    while i < len(text):
        ch = text[i]
        if ch in "\"'" and _starts_token(text, i, col):
            close = _quote_close(text, i + 1, ch)
            i = len(text) if close is None else close
            continue
        if ch == "#" and (i == 0 or text[i - 1] in " \t"):
            return len(text[:i].rstrip())
        i += 1
    return len(text.rstrip())


def _scan_quoted(lines: list[str], line: int, col: int) -> tuple[int, int]:
    quote = _body(lines[line])[col]
    ln, start = line, col + 1
    while ln < len(lines):
        close = _quote_close(_body(lines[ln]), start, quote)
        if close is not None:
            return ln, close
        ln, start = ln + 1, 0
    raise MalformedInputError(f"unterminated quoted scalar at line {line + 1}")


def _scan_flow(lines: list[str], line: int, col: int) -> tuple[int, int]:
    depth = 0
    ln, i = line, col
    while ln < len(lines):
        text = _body(lines[ln])
        while i < len(text):
            ch = text[i]
            if ch in "\"'" and _starts_token(text, i, col if ln == line else 0):
                ln, i = _scan_quoted(lines, ln, i)
                text = _body(lines[ln])
                continue
            if ch == "#" and (i == 0 or text[i - 1] in " \t"):
                break
            if ch in "[{":
                depth += 1
            elif ch in "]}":
                depth -= 1
                if depth == 0:
                    return ln, i + 1
            i += 1
        ln, i = ln + 1, 0
    raise MalformedInputError(f"unterminated flow collection at line {line + 1}")


def token_end(lines: list[str], line: int, col: int) -> tuple[int, int]:
    """Return ``(line, col)`` just past the YAML token starting at ``(line, col)``.

    Quoted scalars and flow collections may span several lines; plain
    scalars and block scalar headers end on their own line.
    """
    text = _body(lines[line])
    ch = text[col : col + 1]
    if ch in ("'", '"'):
        return _scan_quoted(lines, line, col)
    if ch in ("[", "{"):
        return _scan_flow(lines, line, col)
    return line, content_end(text, col)


def place_marker(lines: list[str], line: int, col: int, marker: str) -> str | None:
    """Append *marker* to ``lines[line]`` after the content ending at *col*.

    Any trailing comment already on the line is replaced and returned
    (None when there was none). The line's ``\\r`` terminator, if
    present, is kept.
    """
    raw = lines[line]
    cr = "\r" if raw.endswith("\r") else ""
    text = _body(raw)
    end = content_end(text, col)
    previous = text[end:].strip()
    lines[line] = f"{text[:end]} {marker}{cr}"
    return previous if previous.startswith("#") else None
