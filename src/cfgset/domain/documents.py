"""DocumentSet — one YAML source parsed into editable trees.

Parsing uses ruamel.yaml round-trip mode so every mapping and sequence
carries line/column marks (``.lc``). Those marks are absolute within the
source stream, which lets the annotator splice marker comments into the
original text instead of re-dumping it: formatting, comments, key order,
and ``---`` separators survive byte for byte.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError
from ruamel.yaml.nodes import MappingNode, ScalarNode, SequenceNode

from cfgset.domain.errors import MalformedInputError
from cfgset.domain.markers import format_marker, parse_marker, place_marker, token_end

ConcretePath = tuple[str | int, ...]

_FLOW_STOP = re.compile(r"[,\]}]")
_PROPERTIES = re.compile(r"^(?:[&!]\S*(?:[ \t]+|$))+")
_NULL_TOKENS = frozenset({"~", "null", "Null", "NULL"})


def new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser/emitter.

    A new instance per call avoids emitter state leaking between
    operations (ruamel's YAML object is stateful).
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    y.indent(mapping=2, sequence=2, offset=0)
    y.width = 4096
    return y


def is_collection(node: Any) -> bool:
    return isinstance(node, (dict, list))


@dataclass(frozen=True)
class Annotation:
    """Annotated source text plus any markers of other setters it replaced.

    ``replaced`` holds ``(document_index, path, previous_setter)`` triples.
    """

    text: str
    replaced: list[tuple[int, ConcretePath, str]] = field(default_factory=list)


@dataclass
class DocumentSet:
    """An ordered sequence of YAML documents loaded from one source.

    ``documents`` holds one tree per ``---``-separated document (``None``
    for empty documents). ``text`` is the exact source text; it is never
    re-emitted from the trees. ``plain_ends`` maps the start of every plain
    scalar spanning several lines to the position just past its last
    character.
    """

    source: Path
    text: str
    documents: list[Any] = field(default_factory=list)
    plain_ends: dict[tuple[int, int], tuple[int, int]] = field(default_factory=dict)

    def lines(self) -> list[str]:
        return self.text.split("\n")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def parent_of(self, document_index: int, path: ConcretePath) -> tuple[Any, str | int]:
        """Return ``(container, last_segment)`` for a concrete *path*."""
        node = self.documents[document_index]
        for segment in path[:-1]:
            node = node[segment]
        return node, path[-1]

    def node_at(self, document_index: int, path: ConcretePath) -> Any:
        parent, key = self.parent_of(document_index, path)
        return parent[key]

    # ------------------------------------------------------------------
    # Textual values
    # ------------------------------------------------------------------

    def scalar_text(self, parent: Any, key: str | int, lines: list[str] | None = None) -> str:
        """Return the textual value of the scalar at ``parent[key]``.

        Strings yield their parsed value (quotes removed). Other scalars
        yield the raw token as written, so ``3`` is ``"3"`` and ``0x1F``
        stays ``"0x1F"``. Anchors and tags are not part of the value, and
        an empty value (``key:``) is ``""``.
        """
        node = parent[key]
        if isinstance(node, str):
            return str(node)
        position = _value_position(parent, key)
        if position is None:
            return "" if node is None else str(node)
        lines = lines if lines is not None else self.lines()
        if node is None and not _written_null(lines, parent, key, position):
            return ""
        token = _raw_token(lines, *position)
        if token is None:
            return "" if node is None else str(node)
        return token

    def element_texts(self, sequence: list[Any], lines: list[str] | None = None) -> list[str]:
        """Return the textual values of every element of *sequence*."""
        lines = lines if lines is not None else self.lines()
        return [self.scalar_text(sequence, i, lines) for i in range(len(sequence))]

    # ------------------------------------------------------------------
    # Annotation
    # ------------------------------------------------------------------

    def annotate(self, targets: Iterable[tuple[int, ConcretePath]], name: str) -> Annotation:
        """Mark every target with a marker for setter *name*.

        *targets* are ``(document_index, concrete_path)`` pairs. Only the
        lines carrying a marker change. A marker for another setter
        already on a target line is replaced and reported in
        :attr:`Annotation.replaced`.

        Raises:
            MalformedInputError: If a target has no place a marker can go,
                or the annotated text would no longer parse.
        """
        lines = self.lines()
        marker = format_marker(name)
        replaced: list[tuple[int, ConcretePath, str]] = []
        for document_index, path in targets:
            parent, key = self.parent_of(document_index, path)
            line, col = _marker_anchor(lines, parent, key, self.plain_ends)
            previous = place_marker(lines, line, col, marker)
            bound = parse_marker(previous) if previous is not None else None
            if bound is not None and bound != name:
                replaced.append((document_index, path, bound))
        text = "\n".join(lines)
        try:
            list(new_yaml().load_all(text))
        except YAMLError as exc:
            msg = f"marking {self.source} for setter {name} would produce invalid YAML: {exc}"
            raise MalformedInputError(msg, source=str(self.source)) from exc
        return Annotation(text=text, replaced=replaced)


def _value_position(parent: Any, key: str | int) -> tuple[int, int] | None:
    lc = getattr(parent, "lc", None)
    if lc is None or lc.data is None or key not in lc.data:
        return None
    if isinstance(parent, CommentedMap):
        return lc.value(key)
    return lc.item(key)


def _raw_token(lines: list[str], line: int, col: int) -> str | None:
    """The scalar token at ``(line, col)`` without properties, or None if it spans lines."""
    end_line, end_col = token_end(lines, line, col)
    if end_line != line:
        return None
    raw = _PROPERTIES.sub("", lines[line].rstrip("\r")[col:end_col], count=1)
    # Non-string scalars never contain flow indicators; stop at the
    # first one so items of a flow sequence read correctly.
    return _FLOW_STOP.split(raw, maxsplit=1)[0].rstrip()


def _written_null(
    lines: list[str], parent: Any, key: str | int, position: tuple[int, int]
) -> bool:
    """Whether a null at ``parent[key]`` is spelled out (``~``, ``null``).

    An empty value has no token of its own: its recorded position is that
    of whatever follows, usually the next key.
    """
    line, col = position
    if isinstance(parent, CommentedMap) and parent.lc.key(key)[0] != line:
        return False
    return _raw_token(lines, line, col) in _NULL_TOKENS


def _marker_anchor(
    lines: list[str],
    parent: Any,
    key: str | int,
    plain_ends: dict[tuple[int, int], tuple[int, int]],
) -> tuple[int, int]:
    """Locate where the marker for ``parent[key]`` belongs.

    Scalars: just past the token (after the closing quote for quoted
    scalars, after the last line for multi-line plain scalars). Empty
    values: the end of the key line. Flow collections: just past the
    closing bracket. Block collections: the key line introducing the
    collection.
    """
    position = _value_position(parent, key)
    if position is None:
        msg = f"no source position recorded for field {key!r}"
        raise MalformedInputError(msg)
    value_line, value_col = position
    if isinstance(parent, CommentedMap):
        key_line, key_col = parent.lc.key(key)
    else:
        key_line, key_col = value_line, value_col

    node = parent[key]
    if node is None and not _written_null(lines, parent, key, position):
        if not isinstance(parent, CommentedMap):
            msg = f"cannot mark empty sequence item {key} at line {value_line + 1}"
            raise MalformedInputError(msg)
        return key_line, key_col
    if is_collection(node):
        opener = lines[value_line][value_col : value_col + 1]
        if value_line == key_line and opener in ("[", "{"):
            return token_end(lines, value_line, value_col)
        return key_line, key_col
    end = plain_ends.get((value_line, value_col))
    if end is not None:
        return end
    return token_end(lines, value_line, value_col)


def _plain_scalar_ends(roots: Iterable[Any]) -> dict[tuple[int, int], tuple[int, int]]:
    ends: dict[tuple[int, int], tuple[int, int]] = {}
    pending = [root for root in roots if root is not None]
    seen: set[int] = set()
    while pending:
        node = pending.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, ScalarNode):
            start, end = node.start_mark, node.end_mark
            if node.style is None and end.line > start.line:
                ends[(start.line, start.column)] = (end.line, end.column)
        elif isinstance(node, MappingNode):
            for key_node, value_node in node.value:
                pending.extend((key_node, value_node))
        elif isinstance(node, SequenceNode):
            pending.extend(node.value)
    return ends


def parse_documents(text: str, source: Path) -> DocumentSet:
    """Parse *text* (possibly several ``---``-separated documents).

    Raises:
        MalformedInputError: If the text is not valid YAML.
    """
    try:
        documents = list(new_yaml().load_all(text))
        plain_ends = _plain_scalar_ends(new_yaml().compose_all(text))
    except YAMLError as exc:
        raise MalformedInputError(f"failed to parse {source}: {exc}", source=str(source)) from exc
    return DocumentSet(source=source, text=text, documents=documents, plain_ends=plain_ends)
