"""Byte-faithful text file I/O.

Sources are read and written as UTF-8 bytes, never through text-mode
newline translation, so ``\\r\\n`` line endings and a missing final
newline survive a read/write cycle unchanged.
"""

from __future__ import annotations

from pathlib import Path

from cfgset.domain.errors import MalformedInputError


def read_source(path: Path) -> str:
    """Read *path* as UTF-8 without newline translation.

    Raises:
        MalformedInputError: If *path* cannot be read or is not UTF-8.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise MalformedInputError(f"cannot read {path}: {exc}", source=str(path)) from exc
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"{path} is not valid UTF-8: {exc}", source=str(path)) from exc


def write_source(path: Path, content: str) -> None:
    """Write *content* to *path* as UTF-8 without newline translation."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
