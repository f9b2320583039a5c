"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, cfgset.toml only contains
overrides. An empty (or absent) config file is valid.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class RegistryConfig(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    filename: str = "Krmfile"
    path: Path | None = None


class SettersConfig(BaseModel):
    """[setters] section."""

    model_config = {"frozen": True}

    set_by: str | None = None
    resource_suffixes: list[str] = Field(default_factory=lambda: [".yaml", ".yml"])
