"""Tests for Rich renderers and output mode selection."""

from __future__ import annotations

import json

from cfgset.output.formatters import OutputSettings, format_result
from cfgset.output.renderers import render_quiet, render_result
from cfgset.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


def _created() -> ServiceResult:
    return _ok(
        "create_setter",
        name="replicas",
        key="io.k8s.cli.setters.replicas",
        registry="pkg/Krmfile",
        fields=[
            {"source": "pkg/a.yaml", "document": 0, "path": "spec.replicas"},
            {"source": "pkg/b.yaml", "document": 1, "path": "spec.replicas"},
        ],
        files=["pkg/a.yaml", "pkg/b.yaml", "pkg/Krmfile"],
        value="3",
    )


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = render_result(_err("create_setter", "FIELD_NOT_FOUND", "field spec.x not found"))
        assert "ERROR" in output
        assert "create_setter" in output
        assert "field spec.x not found" in output
        assert "FIELD_NOT_FOUND" in output

    def test_verbose_shows_detail(self) -> None:
        result = _err("create_setter", "FIELD_NOT_FOUND", "Bad", field="spec.x")
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "spec.x" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in render_result(ServiceResult(ok=False, op="test"))


# ── Setter renderer ──────────────────────────────────────────────────


class TestCreateSetterRenderer:
    def test_summary_and_fields(self) -> None:
        output = render_result(_created())
        assert output.startswith("OK")
        assert "io.k8s.cli.setters.replicas" in output
        assert "value: 3" in output
        assert "pkg/b.yaml" in output
        assert output.count("spec.replicas") == 2

    def test_list_values(self) -> None:
        result = _ok("create_setter", name="list", list_values=["a", "b"], fields=[])
        assert "list_values: ['a', 'b']" in render_result(result)

    def test_replaced_flag(self) -> None:
        result = _ok("create_setter", name="replicas", value="3", replaced=True)
        assert "overwritten" in render_result(result)

    def test_verbose_telemetry(self) -> None:
        result = ServiceResult(
            ok=True,
            op="create_setter",
            data={"name": "replicas"},
            meta={"telemetry": {"name": "root", "duration_ms": 1.5, "children": []}},
        )
        output = render_result(result, verbose=True)
        assert "meta" in output
        assert "root" in output


class TestGenericRenderer:
    def test_unknown_op(self) -> None:
        output = render_result(_ok("other", items=[1, 2], label="x"))
        assert "items: [1,2]" in output
        assert "label: x" in output


class TestQuiet:
    def test_success(self) -> None:
        assert render_quiet(_created()) == "OK: create_setter replicas"

    def test_failure(self) -> None:
        assert render_quiet(_err("create_setter", "WRITE_FAILED", "boom")) == "ERROR: create_setter — boom"


class TestFormatResult:
    def test_json_wins(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        parsed = json.loads(format_result(_created(), settings=settings))
        assert parsed["data"]["name"] == "replicas"

    def test_quiet(self) -> None:
        output = format_result(_created(), settings=OutputSettings(quiet=True))
        assert output == "OK: create_setter replicas"

    def test_default_is_rich(self) -> None:
        output = format_result(_created())
        assert output.startswith("OK")
        assert "create_setter" in output
