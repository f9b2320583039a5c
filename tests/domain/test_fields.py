"""Tests for field resolution and the consistency validator."""

from __future__ import annotations

import pytest

from cfgset.domain.errors import (
    AmbiguousFieldError,
    FieldNotFoundError,
    FieldPathRequiredError,
    FieldTypeMismatchError,
    InconsistentValuesError,
)
from cfgset.domain.fields import ResolvedField, SetterValue, canonical_value, resolve_fields
from cfgset.domain.paths import parse_field_path
from tests.conftest import DEPLOYMENT, docs

LISTS = """\
apiVersion: v1
kind: Example
spec:
  list:
  - a
  - b
  - c
---
apiVersion: v1
kind: Example
spec:
  list:
  - a
  - b
  - c
---
apiVersion: v1
kind: Other
spec:
  replicas: 1
"""

CONTAINERS = """\
spec:
  template:
    spec:
      containers:
      - name: sidecar
        image: envoy:1.0
      - name: nginx
        image: nginx:1.7.9
"""


def _resolve(
    text: str,
    field: str | None = None,
    value: str | None = None,
    collection: bool = False,
) -> list[ResolvedField]:
    return resolve_fields(
        [docs(text)],
        field_path=parse_field_path(field) if field else None,
        value=value,
        collection=collection,
    )


class TestResolveByPath:
    def test_single_match(self) -> None:
        fields = _resolve(DEPLOYMENT, "spec.replicas")
        assert fields == [ResolvedField(source_index=0, document_index=0, path=("spec", "replicas"))]

    def test_documents_without_path_skipped(self) -> None:
        fields = _resolve(LISTS, "spec.list", collection=True)
        assert [f.document_index for f in fields] == [0, 1]

    def test_across_sources_in_order(self) -> None:
        fields = resolve_fields(
            [docs(DEPLOYMENT, "a.yaml"), docs(DEPLOYMENT, "b.yaml")],
            field_path=parse_field_path("spec.replicas"),
            value=None,
            collection=False,
        )
        assert [f.source_index for f in fields] == [0, 1]

    def test_value_filters_matches(self) -> None:
        fields = _resolve(LISTS, "spec.replicas", value="1")
        assert len(fields) == 1
        with pytest.raises(FieldNotFoundError, match="with value"):
            _resolve(LISTS, "spec.replicas", value="2")

    def test_not_found(self) -> None:
        with pytest.raises(FieldNotFoundError) as exc_info:
            _resolve(DEPLOYMENT, "spec.missing")
        assert exc_info.value.detail["field"] == "spec.missing"

    def test_element_selector(self) -> None:
        fields = _resolve(CONTAINERS, "spec.template.spec.containers[name=nginx].image")
        assert fields[0].path == ("spec", "template", "spec", "containers", 1, "image")

    def test_element_selector_without_match(self) -> None:
        with pytest.raises(FieldNotFoundError):
            _resolve(CONTAINERS, "spec.template.spec.containers[name=redis].image")

    def test_index_out_of_range(self) -> None:
        with pytest.raises(FieldNotFoundError):
            _resolve(CONTAINERS, "spec.template.spec.containers[5].image")

    def test_scalar_setter_on_list_field(self) -> None:
        with pytest.raises(FieldTypeMismatchError, match="--type array"):
            _resolve(LISTS, "spec.list")

    def test_collection_setter_on_scalar(self) -> None:
        with pytest.raises(FieldTypeMismatchError):
            _resolve(DEPLOYMENT, "spec.replicas", collection=True)

    def test_collection_of_mappings_rejected(self) -> None:
        with pytest.raises(FieldTypeMismatchError, match="nested"):
            _resolve(CONTAINERS, "spec.template.spec.containers", collection=True)

    def test_resolution_is_repeatable(self) -> None:
        doc_sets = [docs(LISTS)]
        path = parse_field_path("spec.list")
        first = resolve_fields(doc_sets, field_path=path, value=None, collection=True)
        second = resolve_fields(doc_sets, field_path=path, value=None, collection=True)
        assert first == second


class TestResolveByValue:
    def test_unique_value(self) -> None:
        fields = _resolve(DEPLOYMENT, value="3")
        assert [f.path for f in fields] == [("spec", "replicas")]

    def test_same_path_in_several_documents(self) -> None:
        text = "spec:\n  replicas: 3\n---\nspec:\n  replicas: 3\n"
        fields = _resolve(text, value="3")
        assert [f.document_index for f in fields] == [0, 1]

    def test_ambiguous(self) -> None:
        with pytest.raises(AmbiguousFieldError) as exc_info:
            _resolve("a: 1\nb:\n  c: 1\n", value="1")
        assert exc_info.value.detail["paths"] == ["a", "b.c"]

    def test_keys_never_match(self) -> None:
        with pytest.raises(FieldNotFoundError):
            _resolve("replicas: 3\n", value="replicas")

    def test_sequence_items_searched(self) -> None:
        fields = _resolve("args:\n- --debug\n- --port=80\n", value="--port=80")
        assert fields[0].path == ("args", 1)

    def test_no_match(self) -> None:
        with pytest.raises(FieldNotFoundError):
            _resolve(DEPLOYMENT, value="42")


class TestCollectionRequiresPath:
    def test_error_before_anything_else(self) -> None:
        message = "field flag must be set for array type setters"
        with pytest.raises(FieldPathRequiredError, match=message):
            resolve_fields([], field_path=None, value="a", collection=True)


class TestCanonicalValue:
    def test_scalar(self) -> None:
        doc_sets = [docs(DEPLOYMENT)]
        fields = resolve_fields(
            doc_sets, field_path=parse_field_path("spec.replicas"), value=None, collection=False
        )
        assert canonical_value(doc_sets, fields, collection=False) == SetterValue(value="3")

    def test_collection(self) -> None:
        doc_sets = [docs(LISTS)]
        fields = resolve_fields(
            doc_sets, field_path=parse_field_path("spec.list"), value=None, collection=True
        )
        result = canonical_value(doc_sets, fields, collection=True)
        assert result.list_values == ["a", "b", "c"]
        assert result.value == ""
        assert result.is_list

    def test_inconsistent_arrays(self) -> None:
        text = "spec:\n  list: [a, b, c]\n---\nspec:\n  list: [c, d]\n"
        doc_sets = [docs(text)]
        fields = resolve_fields(
            doc_sets, field_path=parse_field_path("spec.list"), value=None, collection=True
        )
        with pytest.raises(InconsistentValuesError) as exc_info:
            canonical_value(doc_sets, fields, collection=True)
        assert str(exc_info.value) == (
            "setters can only be created for fields with same values, encountered different "
            "array values for specified field path: [c d], [a b c]"
        )

    def test_inconsistent_scalars(self) -> None:
        doc_sets = [docs("spec:\n  replicas: 3\n---\nspec:\n  replicas: 4\n")]
        fields = resolve_fields(
            doc_sets, field_path=parse_field_path("spec.replicas"), value=None, collection=False
        )
        with pytest.raises(InconsistentValuesError, match="values for specified field path: 4, 3"):
            canonical_value(doc_sets, fields, collection=False)

    def test_quoted_and_plain_agree(self) -> None:
        doc_sets = [docs('spec:\n  replicas: 3\n---\nspec:\n  replicas: "3"\n')]
        fields = resolve_fields(
            doc_sets, field_path=parse_field_path("spec.replicas"), value=None, collection=False
        )
        assert canonical_value(doc_sets, fields, collection=False).value == "3"
