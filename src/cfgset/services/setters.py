"""SetterService — create setters across resource documents.

Pipeline: LOAD → COLLIDE → RESOLVE → VALIDATE → SYNTHESIZE → STAGE → COMMIT → RESPOND

Every stage before COMMIT works in memory. A failure anywhere before
COMMIT returns an error result with no file touched; a failure during
COMMIT restores the files already written.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cfgset.config.logging import bind_operation
from cfgset.domain.errors import MalformedInputError, SetterError
from cfgset.domain.fields import canonical_value, resolve_fields
from cfgset.domain.paths import format_field_path, parse_field_path
from cfgset.domain.registry import (
    check_collision,
    decode_definitions,
    registry_definitions,
    setter_key,
    write_entry,
)
from cfgset.domain.schema import apply_type_hints, parse_constraints, synthesize_entry
from cfgset.infrastructure.registry import dump_registry
from cfgset.services.base import BaseService
from cfgset.services.result import FieldRef, ServiceResult, SetterData
from cfgset.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

ARRAY_TYPE = "array"


class SetterService(BaseService):
    """Setter operations over one resource target and its registry."""

    @traced
    def create_setter(
        self,
        target: Path,
        name: str,
        *,
        value: str | None = None,
        field: str | None = None,
        description: str | None = None,
        set_by: str | None = None,
        setter_type: str | None = None,
        element_type: str | None = None,
        schema_path: Path | None = None,
        registry_path: Path | None = None,
        required: bool = False,
    ) -> ServiceResult:
        """Mark the field(s) at *field* (or holding *value*) as setter *name*.

        Annotates every matched field with a ``{"$openapi":"<name>"}``
        marker and registers ``io.k8s.cli.setters.<name>`` in the registry.
        A setter of the same name is replaced; a substitution of the same
        name is an error.
        """
        op = "create_setter"
        warnings: list[str] = []
        collection = setter_type == ARRAY_TYPE
        if set_by is None:
            set_by = self._workspace.settings.setters.set_by
        bind_operation(op, setter=name)

        try:
            if not name.strip():
                raise MalformedInputError("setter name must not be empty")

            # ── LOAD ──────────────────────────────────────────────
            with trace_span("load"):
                registry_file = self._workspace.registry_path(target, registry_path)
                document_sets = self._workspace.load_resources(target, registry=registry_file)
                registry = self._workspace.load_registry(registry_file)
                constraints = {}
                if schema_path is not None:
                    constraints = parse_constraints(
                        self._workspace.read_text(schema_path), str(schema_path)
                    )
                field_path = parse_field_path(field) if field is not None else None

            # ── COLLIDE ───────────────────────────────────────────
            with trace_span("collide"):
                entities = decode_definitions(registry_definitions(registry.tree))
                existing = check_collision(entities, name)
                if existing is not None:
                    logger.warning("Setter %s already exists; replacing its definition", name)
                    warnings.append(f"Setter {name} already existed; its definition was replaced")

            # ── RESOLVE ───────────────────────────────────────────
            with trace_span("resolve"):
                fields = resolve_fields(
                    document_sets,
                    field_path=field_path,
                    value=value,
                    collection=collection,
                )
                logger.debug("Resolved %d field(s) for setter %s", len(fields), name)

            # ── VALIDATE ──────────────────────────────────────────
            with trace_span("validate"):
                canonical = canonical_value(document_sets, fields, collection=collection)

            # ── SYNTHESIZE ────────────────────────────────────────
            with trace_span("synthesize"):
                entry = synthesize_entry(
                    name,
                    apply_type_hints(
                        constraints, setter_type=setter_type, element_type=element_type
                    ),
                    description=description,
                    set_by=set_by,
                    value=canonical,
                    required=required,
                )
                key = setter_key(name)
                write_entry(registry.tree, key, entry)

            # ── STAGE ─────────────────────────────────────────────
            with trace_span("stage"):
                staged: list[tuple[Path, str]] = []
                for source_index, doc_set in enumerate(document_sets):
                    targets = [
                        (f.document_index, f.path) for f in fields if f.source_index == source_index
                    ]
                    if not targets:
                        continue
                    annotation = doc_set.annotate(targets, name)
                    for _, path, previous in annotation.replaced:
                        logger.warning(
                            "Replacing marker for setter %s on %s", previous, format_field_path(path)
                        )
                        warnings.append(
                            f"{doc_set.source}: {format_field_path(path)} was bound to "
                            f"setter {previous}; marker replaced"
                        )
                    staged.append((doc_set.source, annotation.text))
                staged.append((registry.path, dump_registry(registry)))

            # ── COMMIT ────────────────────────────────────────────
            with trace_span("commit"):
                with self._workspace.transaction() as txn:
                    for path, text in staged:
                        txn.write_file(path, text)
        except SetterError as exc:
            return self._failure(op, exc, warnings)

        logger.debug("Created setter %s on %d field(s)", name, len(fields))

        # ── RESPOND ───────────────────────────────────────────────
        data: SetterData = {
            "name": name,
            "key": key,
            "registry": str(registry.path),
            "fields": [
                FieldRef(
                    source=str(document_sets[f.source_index].source),
                    document=f.document_index,
                    path=format_field_path(f.path),
                )
                for f in fields
            ],
            "files": [str(path) for path, _ in staged],
        }
        if canonical.is_list:
            data["list_values"] = canonical.list_values
        else:
            data["value"] = canonical.value
        if existing is not None:
            data["replaced"] = True
        return ServiceResult(ok=True, op=op, data=dict(data), warnings=warnings)
