"""Resource discovery and loading.

A resource target is either one YAML file or a directory walked
recursively for YAML files. Hidden files and directories are skipped.
Parsing itself lives in :mod:`cfgset.domain.documents`.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from cfgset.domain.documents import DocumentSet, parse_documents
from cfgset.domain.errors import MalformedInputError
from cfgset.infrastructure.filesystem import read_source

DEFAULT_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")


def find_resource_files(
    target: Path,
    *,
    suffixes: Iterable[str] = DEFAULT_SUFFIXES,
    exclude: Iterable[Path] = (),
) -> list[Path]:
    """List resource files under *target*, sorted by path.

    A file target is returned as-is regardless of its suffix.
    """
    if target.is_file():
        return [target]
    if not target.is_dir():
        raise MalformedInputError(f"resource path {target} does not exist", path=str(target))

    allowed = tuple(suffixes)
    skipped = {p.resolve() for p in exclude}
    results: list[Path] = []
    for path in target.rglob("*"):
        if not path.is_file() or path.suffix not in allowed:
            continue
        relative = path.relative_to(target)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if path.resolve() in skipped:
            continue
        results.append(path)
    return sorted(results)


def load_resources(paths: Iterable[Path]) -> list[DocumentSet]:
    """Read and parse every resource file."""
    return [parse_documents(read_source(path), path) for path in paths]
