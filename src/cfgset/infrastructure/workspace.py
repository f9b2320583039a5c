"""Workspace — resource/registry access with all-or-nothing commits.

The Workspace is the single dependency injected into every service. It
locates and loads resources and the registry, and its
:meth:`~Workspace.transaction` context manager applies staged writes so
that if any write fails, every file already written is restored from its
in-memory backup.

Services compute every change in memory first and only open a
transaction once nothing else can fail; a failed validation therefore
never touches the disk.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from cfgset.domain.errors import WriteFailedError
from cfgset.infrastructure.filesystem import read_source, write_source
from cfgset.infrastructure.registry import RegistryDocument, load_registry
from cfgset.infrastructure.resources import find_resource_files, load_resources

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cfgset.config.settings import CfgSettings
    from cfgset.domain.documents import DocumentSet

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File operation tracking for compensation-based rollback
# ---------------------------------------------------------------------------


@dataclass
class _FileOp:
    """A tracked file write within a workspace transaction."""

    path: Path
    backup: bytes | None  # original bytes for updates, None for creates

    def rollback(self) -> None:
        """Undo this file operation (best-effort)."""
        try:
            if self.backup is not None:
                self.path.write_bytes(self.backup)
            else:
                self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to rollback file operation: %s", self.path)


@dataclass
class WorkspaceTransaction:
    """Active transaction with tracked file writes.

    All writes must go through :meth:`write_file` so the workspace can
    compensate on rollback.
    """

    _ops: list[_FileOp] = field(default_factory=list, repr=False)

    def write_file(self, path: Path, content: str) -> None:
        """Write *content* to *path*, backing up any existing bytes first."""
        backup = path.read_bytes() if path.exists() else None
        self._ops.append(_FileOp(path=path, backup=backup))
        write_source(path, content)

    @property
    def written(self) -> list[Path]:
        return [op.path for op in self._ops]

    def rollback(self) -> None:
        for op in reversed(self._ops):
            op.rollback()


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class Workspace:
    """Entry point for loading resources and committing changes."""

    def __init__(self, settings: CfgSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> CfgSettings:
        return self._settings

    def registry_path(self, target: Path, override: Path | None = None) -> Path:
        """Resolve the registry document for resource *target*.

        Priority: explicit *override*, then ``[registry] path`` from
        settings, then ``<resource dir>/<[registry] filename>``.
        """
        if override is not None:
            return override
        if self._settings.registry.path is not None:
            return self._settings.registry.path
        base = target if target.is_dir() else target.parent
        return base / self._settings.registry.filename

    def resource_files(self, target: Path, *, registry: Path | None = None) -> list[Path]:
        exclude = [registry] if registry is not None else []
        return find_resource_files(
            target,
            suffixes=self._settings.setters.resource_suffixes,
            exclude=exclude,
        )

    def load_resources(self, target: Path, *, registry: Path | None = None) -> list[DocumentSet]:
        files = self.resource_files(target, registry=registry)
        logger.debug("Loading %d resource file(s) from %s", len(files), target)
        return load_resources(files)

    def load_registry(self, path: Path) -> RegistryDocument:
        return load_registry(path)

    def read_text(self, path: Path) -> str:
        return read_source(path)

    @contextmanager
    def transaction(self) -> Iterator[WorkspaceTransaction]:
        """Apply writes atomically: on any failure, restore written files.

        Raises:
            WriteFailedError: A write failed (after rollback).
        """
        txn = WorkspaceTransaction()
        try:
            yield txn
        except OSError as exc:
            txn.rollback()
            raise WriteFailedError(f"failed to write changes: {exc}") from exc
        except BaseException:
            txn.rollback()
            raise
        logger.debug("Committed %d file(s)", len(txn.written))
