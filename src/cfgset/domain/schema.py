"""Schema synthesis — build a setter's registry entry.

Entry layout (key order is part of the contract, reviewers diff it)::

    <constraint keys, lexicographic, nested mappings sorted too>
    description: <text>
    x-k8s-cli:
      setter:
        name: <name>
        value: <scalar value, "" for list setters>
        listValues: [...]        # list setters only
        setBy: <provenance>      # when given
        required: true           # required setters only
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarstring import DoubleQuotedScalarString

from cfgset.domain.errors import MalformedInputError
from cfgset.domain.fields import SetterValue
from cfgset.domain.registry import EXTENSION_KEY

DESCRIPTION_KEY = "description"

# Generated keys; a fragment cannot override them.
_RESERVED_KEYS = frozenset({DESCRIPTION_KEY, EXTENSION_KEY})


def parse_constraints(text: str, source: str = "<constraints>") -> dict[str, Any]:
    """Parse a constraint fragment (JSON or YAML) into a plain mapping.

    An empty fragment yields ``{}``.

    Raises:
        MalformedInputError: If the fragment is not valid or not a mapping.
    """
    try:
        loaded = YAML(typ="safe", pure=True).load(text)
    except YAMLError as exc:
        raise MalformedInputError(f"failed to parse {source}: {exc}", source=source) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise MalformedInputError(f"{source} must contain a mapping of constraints", source=source)
    return loaded


def apply_type_hints(
    constraints: Mapping[str, Any],
    *,
    setter_type: str | None = None,
    element_type: str | None = None,
) -> dict[str, Any]:
    """Fill ``type`` / ``items.type`` from CLI hints where the fragment is silent."""
    merged = dict(constraints)
    if setter_type and "type" not in merged:
        merged["type"] = setter_type
    if element_type:
        items = merged.get("items")
        items = dict(items) if isinstance(items, Mapping) else {}
        items.setdefault("type", element_type)
        merged["items"] = items
    return merged


def _reads_as_string(text: str) -> bool:
    try:
        loaded = YAML(typ="safe", pure=True).load(text)
    except YAMLError:
        return False
    return isinstance(loaded, str) and loaded == text


def yaml_string(text: str) -> str:
    """Return *text* double quoted when plain YAML would read it as a non-string."""
    if text and _reads_as_string(text):
        return text
    return DoubleQuotedScalarString(text)


def _canonical(value: Any) -> Any:
    if isinstance(value, Mapping):
        ordered = CommentedMap()
        for key in sorted(value, key=str):
            ordered[key] = _canonical(value[key])
        return ordered
    if isinstance(value, list):
        return CommentedSeq(_canonical(item) for item in value)
    return value


def synthesize_entry(
    name: str,
    constraints: Mapping[str, Any] | None,
    *,
    description: str | None,
    set_by: str | None,
    value: SetterValue,
    required: bool = False,
) -> CommentedMap:
    """Merge *constraints* with generated setter metadata into one entry.

    Output is deterministic: identical inputs give identical key order
    and content.
    """
    entry = CommentedMap()
    for key in sorted(constraints or {}, key=str):
        if key in _RESERVED_KEYS:
            continue
        entry[key] = _canonical(constraints[key])  # type: ignore[index]
    if description is not None:
        entry[DESCRIPTION_KEY] = yaml_string(description)

    setter = CommentedMap()
    setter["name"] = yaml_string(name)
    setter["value"] = yaml_string(value.value)
    if value.list_values is not None:
        setter["listValues"] = CommentedSeq(yaml_string(item) for item in value.list_values)
    if set_by is not None:
        setter["setBy"] = yaml_string(set_by)
    if required:
        setter["required"] = True

    extension = CommentedMap()
    extension["setter"] = setter
    entry[EXTENSION_KEY] = extension
    return entry
