"""Field resolution and value consistency.

Resolution turns a field path (or a literal value) into
:class:`ResolvedField` coordinates across every loaded document. The
coordinates hold no node references: later stages re-index the tree
through ``DocumentSet.parent_of``.

Validation checks that every occurrence carries the same value (or the
same ordered elements, for collection setters) and returns the canonical
:class:`SetterValue`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from pydantic import BaseModel

from cfgset.domain.documents import ConcretePath, DocumentSet, is_collection
from cfgset.domain.errors import (
    AmbiguousFieldError,
    FieldNotFoundError,
    FieldPathRequiredError,
    FieldTypeMismatchError,
    InconsistentValuesError,
)
from cfgset.domain.paths import ElementMatch, FieldPath, format_field_path


class ResolvedField(BaseModel):
    """Coordinates of one matched field: source file, document, concrete path."""

    model_config = {"frozen": True}

    source_index: int
    document_index: int
    path: tuple[str | int, ...]


class SetterValue(BaseModel):
    """Canonical value registered for a setter.

    Scalar setters populate ``value``; collection setters populate
    ``list_values`` and leave ``value`` empty.
    """

    model_config = {"frozen": True}

    value: str = ""
    list_values: list[str] | None = None

    @property
    def is_list(self) -> bool:
        return self.list_values is not None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def resolve_fields(
    document_sets: Sequence[DocumentSet],
    *,
    field_path: FieldPath | None,
    value: str | None,
    collection: bool,
) -> list[ResolvedField]:
    """Locate every field the setter applies to.

    With *field_path*, each document holding the full path contributes
    one match (documents without it are skipped); a literal *value*
    further restricts scalar matches to that value. Without a path, every
    scalar leaf whose textual value equals *value* matches, and all
    matches must share one path.

    Raises:
        FieldPathRequiredError: Collection setter without *field_path*.
        FieldNotFoundError: Nothing matched.
        AmbiguousFieldError: A value search matched several paths.
        FieldTypeMismatchError: The matched node has the wrong shape.
    """
    if collection and field_path is None:
        raise FieldPathRequiredError("field flag must be set for array type setters")
    if field_path is None:
        if value is None:
            raise FieldNotFoundError("a field path or a value is required to find the field")
        return _search_value(document_sets, value)

    matches: list[ResolvedField] = []
    for source_index, doc_set in enumerate(document_sets):
        lines = doc_set.lines()
        for document_index, tree in enumerate(doc_set.documents):
            concrete = _walk(doc_set, tree, field_path, lines)
            if concrete is None:
                continue
            parent, key = doc_set.parent_of(document_index, concrete)
            _check_shape(parent[key], concrete, collection=collection)
            if not collection and value is not None:
                if doc_set.scalar_text(parent, key, lines) != value:
                    continue
            matches.append(
                ResolvedField(
                    source_index=source_index,
                    document_index=document_index,
                    path=concrete,
                )
            )

    if not matches:
        shown = format_field_path(field_path)
        msg = f"field {shown} not found in any resource"
        if value is not None and not collection:
            msg = f"field {shown} with value {value!r} not found in any resource"
        raise FieldNotFoundError(msg, field=shown)
    return matches


def _walk(
    doc_set: DocumentSet,
    tree: Any,
    field_path: FieldPath,
    lines: list[str],
) -> ConcretePath | None:
    """Follow *field_path* through *tree*; None if any segment is missing."""
    node = tree
    concrete: list[str | int] = []
    for segment in field_path:
        if isinstance(segment, ElementMatch):
            if not isinstance(node, list):
                return None
            index = _match_element(doc_set, node, segment, lines)
            if index is None:
                return None
            step: str | int = index
        elif isinstance(segment, int):
            if not isinstance(node, list) or segment >= len(node):
                return None
            step = segment
        else:
            if not isinstance(node, dict) or segment not in node:
                return None
            step = segment
        concrete.append(step)
        node = node[step]
    return tuple(concrete)


def _match_element(
    doc_set: DocumentSet,
    sequence: list[Any],
    selector: ElementMatch,
    lines: list[str],
) -> int | None:
    for index, item in enumerate(sequence):
        if not isinstance(item, dict) or selector.field not in item:
            continue
        if is_collection(item[selector.field]):
            continue
        if doc_set.scalar_text(item, selector.field, lines) == selector.value:
            return index
    return None


def _check_shape(node: Any, path: ConcretePath, *, collection: bool) -> None:
    shown = format_field_path(path)
    if collection:
        if not isinstance(node, list):
            raise FieldTypeMismatchError(
                f"field {shown} does not hold a list; array setters need a list field",
                field=shown,
            )
        if any(is_collection(item) for item in node):
            raise FieldTypeMismatchError(
                f"field {shown} holds nested collections; array setters need scalar elements",
                field=shown,
            )
    elif is_collection(node):
        raise FieldTypeMismatchError(
            f"field {shown} holds a collection; use --type array for list fields",
            field=shown,
        )


def _leaves(node: Any, prefix: ConcretePath = ()) -> Iterator[tuple[ConcretePath, Any, str | int]]:
    """Yield ``(path, parent, key)`` for every scalar leaf under *node*."""
    if isinstance(node, dict):
        items: Iterator[tuple[str | int, Any]] = iter(node.items())
    elif isinstance(node, list):
        items = iter(enumerate(node))
    else:
        return
    for key, child in items:
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            continue
        path = (*prefix, key)
        if is_collection(child):
            yield from _leaves(child, path)
        else:
            yield path, node, key


def _search_value(document_sets: Sequence[DocumentSet], value: str) -> list[ResolvedField]:
    matches: list[ResolvedField] = []
    for source_index, doc_set in enumerate(document_sets):
        lines = doc_set.lines()
        for document_index, tree in enumerate(doc_set.documents):
            for path, parent, key in _leaves(tree):
                if doc_set.scalar_text(parent, key, lines) == value:
                    matches.append(
                        ResolvedField(
                            source_index=source_index,
                            document_index=document_index,
                            path=path,
                        )
                    )

    if not matches:
        raise FieldNotFoundError(f"no field with value {value!r} found in any resource")

    distinct = list(dict.fromkeys(match.path for match in matches))
    if len(distinct) > 1:
        shown = [format_field_path(path) for path in distinct]
        raise AmbiguousFieldError(
            f"value {value!r} found at multiple field paths ({', '.join(shown)}); "
            "use --field to pick one",
            paths=shown,
        )
    return matches


# ---------------------------------------------------------------------------
# Consistency validator
# ---------------------------------------------------------------------------

_INCONSISTENT = "setters can only be created for fields with same values, encountered different"


def _bracketed(values: list[str]) -> str:
    return "[" + " ".join(values) + "]"


def canonical_value(
    document_sets: Sequence[DocumentSet],
    fields: Sequence[ResolvedField],
    *,
    collection: bool,
) -> SetterValue:
    """Return the value shared by every resolved field.

    The first occurrence is the baseline. The first occurrence that
    differs raises :class:`InconsistentValuesError`, reporting the
    diverging value first and the baseline second.
    """
    if not fields:
        raise FieldNotFoundError("no fields to validate")

    lines_by_source: dict[int, list[str]] = {}
    baseline: str | list[str] | None = None
    for resolved in fields:
        doc_set = document_sets[resolved.source_index]
        lines = lines_by_source.setdefault(resolved.source_index, doc_set.lines())
        parent, key = doc_set.parent_of(resolved.document_index, resolved.path)
        current: str | list[str]
        if collection:
            current = doc_set.element_texts(parent[key], lines)
        else:
            current = doc_set.scalar_text(parent, key, lines)

        if baseline is None:
            baseline = current
        elif current != baseline:
            shown = format_field_path(resolved.path)
            if isinstance(current, list) and isinstance(baseline, list):
                raise InconsistentValuesError(
                    f"{_INCONSISTENT} array values for specified field path: "
                    f"{_bracketed(current)}, {_bracketed(baseline)}",
                    field=shown,
                )
            raise InconsistentValuesError(
                f"{_INCONSISTENT} values for specified field path: {current}, {baseline}",
                field=shown,
            )

    if isinstance(baseline, list):
        return SetterValue(value="", list_values=baseline)
    return SetterValue(value=baseline or "")
