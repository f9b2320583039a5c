"""Shared pytest fixtures and test helpers for cfgset tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from cfgset.config.settings import CfgSettings
from cfgset.domain.documents import DocumentSet, parse_documents
from cfgset.infrastructure.workspace import Workspace
from cfgset.services.telemetry import _current_span, enable_telemetry

KRMFILE = """\
apiVersion: kpt.dev/v1alpha1
kind: Kptfile
metadata:
  name: test-package
"""

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: nginx-deployment
spec:
  replicas: 3
"""


@pytest.fixture(autouse=True)
def _clean_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Isolate every test from ambient config, telemetry, and log context."""
    monkeypatch.delenv("CFGSET_CONFIG", raising=False)
    yield
    enable_telemetry(False)
    _current_span.set(None)
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def package(tmp_path: Path) -> Path:
    """Package directory holding an empty-definitions Krmfile."""
    root = tmp_path / "pkg"
    root.mkdir()
    (root / "Krmfile").write_text(KRMFILE)
    return root


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Workspace with default settings (no config file in reach)."""
    return Workspace(CfgSettings.from_cli(start=tmp_path))


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write(path: Path, content: str) -> Path:
    """Write *content* as raw bytes (no newline translation)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
    return path


def read(path: Path) -> str:
    return path.read_bytes().decode("utf-8")


def docs(text: str, name: str = "resource.yaml") -> DocumentSet:
    """Parse *text* into a DocumentSet."""
    return parse_documents(text, Path(name))
