"""Registry document I/O.

The registry is loaded whole into a ruamel round-trip tree, mutated in
memory, and dumped whole. Round-trip mode keeps comments, quoting, and
key order of every definition this tool does not touch.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from cfgset.domain.documents import new_yaml
from cfgset.domain.errors import MalformedInputError, RegistryNotFoundError
from cfgset.infrastructure.filesystem import read_source


@dataclass
class RegistryDocument:
    """A loaded registry document."""

    path: Path
    text: str
    tree: Any


def parse_registry(text: str, path: Path) -> RegistryDocument:
    """Parse registry *text*; an empty document becomes an empty mapping."""
    try:
        tree = new_yaml().load(text)
    except YAMLError as exc:
        raise MalformedInputError(f"failed to parse {path}: {exc}", source=str(path)) from exc
    if tree is None:
        tree = CommentedMap()
    if not isinstance(tree, dict):
        raise MalformedInputError(f"registry {path} must be a YAML mapping", source=str(path))
    return RegistryDocument(path=path, text=text, tree=tree)


def load_registry(path: Path) -> RegistryDocument:
    """Read and parse the registry document at *path*."""
    if not path.is_file():
        raise RegistryNotFoundError(f"registry document {path} not found", path=str(path))
    return parse_registry(read_source(path), path)


def dump_registry(document: RegistryDocument) -> str:
    """Serialize the (possibly mutated) registry tree."""
    buf = StringIO()
    new_yaml().dump(document.tree, buf)
    return buf.getvalue()
