"""Field path parsing and formatting.

A field path addresses one node inside a YAML tree using dot/bracket
syntax::

    spec.replicas
    spec.list[0]
    spec.template.spec.containers[name=nginx].image
    metadata.annotations[example.com/owner]

Bracket contents that are all digits are sequence indices, ``field=value``
selects the first sequence element whose *field* has that textual value,
and anything else is a mapping key (which may itself contain dots).
"""

from __future__ import annotations

from typing import NamedTuple

from cfgset.domain.errors import MalformedInputError


class ElementMatch(NamedTuple):
    """Sequence element selector written ``[field=value]``."""

    field: str
    value: str


PathSegment = str | int | ElementMatch
FieldPath = tuple[PathSegment, ...]

_KEY_STOP = ".[]"


def parse_field_path(raw: str) -> FieldPath:
    """Parse *raw* into a tuple of path segments.

    Raises:
        MalformedInputError: If *raw* is empty or not a well-formed path.
    """
    text = raw.strip()
    if not text:
        raise MalformedInputError("field path must not be empty")

    segments: list[PathSegment] = []
    i = 0
    while i < len(text):
        if text[i] == "[":
            end = text.find("]", i)
            if end == -1:
                raise MalformedInputError(f"unclosed bracket in field path {raw!r}", path=raw)
            segments.append(_bracket_segment(text[i + 1 : end], raw))
            i = end + 1
            if i < len(text) and text[i] not in ".[":
                raise MalformedInputError(f"unexpected {text[i]!r} in field path {raw!r}", path=raw)
        else:
            j = i
            while j < len(text) and text[j] not in _KEY_STOP:
                j += 1
            key = text[i:j]
            if not key or (j < len(text) and text[j] == "]"):
                raise MalformedInputError(f"empty or invalid key in field path {raw!r}", path=raw)
            segments.append(key)
            i = j

        if i < len(text) and text[i] == ".":
            i += 1
            if i == len(text):
                raise MalformedInputError(f"trailing dot in field path {raw!r}", path=raw)

    return tuple(segments)


def _bracket_segment(inner: str, raw: str) -> PathSegment:
    if not inner:
        raise MalformedInputError(f"empty brackets in field path {raw!r}", path=raw)
    if inner.isdigit():
        return int(inner)
    if "=" in inner:
        field, _, value = inner.partition("=")
        if not field:
            raise MalformedInputError(f"selector without field in path {raw!r}", path=raw)
        return ElementMatch(field, value)
    return inner


def format_field_path(path: FieldPath) -> str:
    """Render *path* back to dot/bracket syntax."""
    out: list[str] = []
    for segment in path:
        if isinstance(segment, ElementMatch):
            out.append(f"[{segment.field}={segment.value}]")
        elif isinstance(segment, int):
            out.append(f"[{segment}]")
        elif any(ch in segment for ch in _KEY_STOP):
            out.append(f"[{segment}]")
        else:
            out.append(f".{segment}" if out else segment)
    return "".join(out)
