"""Tests for operation-specific Rich renderers."""

from writeguard.output.renderers import render_quiet, render_result
from writeguard.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


_ERRORS = [
    "The value `x` is not valid for `state`. Valid values are: 'started', 'accepted'.",
    "`email` is required.",
]


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = render_result(_err("insert", "UNKNOWN_TYPE", "Unknown type: 'x'"))
        assert "ERROR" in output
        assert "insert" in output
        assert "UNKNOWN_TYPE" in output
        assert "Unknown type: 'x'" in output

    def test_validation_failure_lists_each_error(self) -> None:
        result = _err("insert", "VALIDATION_FAILED", " ".join(_ERRORS), errors=_ERRORS)
        lines = render_result(result).splitlines()
        assert lines[1] == f"  - {_ERRORS[0]}"
        assert lines[2] == f"  - {_ERRORS[1]}"

    def test_verbose_shows_detail(self) -> None:
        result = _err("update", "NOT_FOUND", "No row", key={"id": 9})
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "key: {'id': 9}" in output

    def test_verbose_detail_skips_error_list(self) -> None:
        result = _err("insert", "VALIDATION_FAILED", "m", errors=["m"], type="orders")
        output = render_result(result, verbose=True)
        assert "type: orders" in output
        assert "errors:" not in output

    def test_message_with_brackets_is_literal(self) -> None:
        output = render_result(_err("insert", "DATABASE_ERROR", "failed [sql: insert]"))
        assert "failed [sql: insert]" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in render_result(ServiceResult(ok=False, op="test"))


# ── Write renderer ───────────────────────────────────────────────────


class TestWriteRenderer:
    def test_insert(self) -> None:
        result = _ok(
            "insert",
            type="orders",
            operation="insert",
            validated=True,
            values={"state": "started"},
            rowcount=1,
            key={"id": 1},
        )
        output = render_result(result)
        assert output.splitlines()[0].split() == ["OK", "insert"]
        assert "type: orders" in output
        assert 'key: {"id":1}' in output
        assert 'values: {"state":"started"}' in output

    def test_unchecked_marked_unvalidated(self) -> None:
        result = _ok("insert_unchecked", type="orders", operation="insert", validated=False)
        assert "validated: False" in render_result(result)


# ── Validate renderer ────────────────────────────────────────────────


class TestValidateRenderer:
    def test_valid(self) -> None:
        result = _ok("validate", type="orders", operation="insert", valid=True, errors=[], values={})
        assert render_result(result).split() == ["VALID", "insert", "orders"]

    def test_invalid_lists_errors(self) -> None:
        result = _ok(
            "validate", type="orders", operation="update", valid=False, errors=_ERRORS, values={}
        )
        lines = render_result(result).splitlines()
        assert lines[0].split() == ["INVALID", "update", "orders"]
        assert lines[1:] == [f"  - {e}" for e in _ERRORS]


# ── Type listing ─────────────────────────────────────────────────────


def _types_result() -> ServiceResult:
    return _ok(
        "list_types",
        count=1,
        items=[
            {
                "name": "orders",
                "table": "orders",
                "key": ["id"],
                "pre_write": True,
                "post_validation": False,
                "properties": [
                    {"name": "id", "type": "integer", "nullable": False, "persistent": True, "rules": []},
                    {
                        "name": "code",
                        "type": "string",
                        "nullable": True,
                        "persistent": True,
                        "rules": [
                            {"kind": "pattern", "description": "pattern([a-z]+)",
                             "operations": ["insert", "update"], "gate": "value"},
                            {"kind": "absent", "description": "absent",
                             "operations": ["update"], "gate": "presence"},
                        ],
                    },
                    {"name": "confirm", "type": "string", "nullable": True, "persistent": False, "rules": []},
                ],
            }
        ],
    )


class TestTypesRenderer:
    def test_lists_properties_and_rules(self) -> None:
        output = render_result(_types_result())
        assert "orders (table orders)" in output
        assert "hooks: pre_write" in output
        assert "id*" in output
        assert "pattern([a-z]+)" in output
        assert "absent [update]" in output

    def test_transient_only_when_verbose(self) -> None:
        assert "confirm" not in render_result(_types_result())
        assert "confirm" in render_result(_types_result(), verbose=True)

    def test_empty(self) -> None:
        assert render_result(_ok("list_types", count=0, items=[])) == "No types registered."


# ── Generic + quiet ──────────────────────────────────────────────────


class TestGenericRenderer:
    def test_unknown_op(self) -> None:
        output = render_result(_ok("custom_op", answer=42))
        assert "OK" in output
        assert "answer: 42" in output

    def test_verbose_renders_span_tree(self) -> None:
        result = ServiceResult(
            ok=True,
            op="insert",
            data={"type": "orders"},
            meta={
                "telemetry": {
                    "name": "WriteService.insert",
                    "duration_ms": 2.0,
                    "annotations": {"type": "orders"},
                    "children": [
                        {"name": "validate", "duration_ms": 0.5, "annotations": {"errors": 0}}
                    ],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "WriteService.insert  2.00ms" in output
        assert "WriteService.insert  2.00ms  type=orders" in output
        assert "validate  0.50ms  errors=0" in output


class TestQuietRenderer:
    def test_ok(self) -> None:
        assert render_quiet(_ok("insert")) == "OK: insert"

    def test_error(self) -> None:
        assert render_quiet(_err("insert", "VALIDATION_FAILED", "`email` is required.")) == (
            "ERROR: insert — `email` is required."
        )

    def test_validate(self) -> None:
        assert render_quiet(_ok("validate", valid=True)) == "valid"
        assert render_quiet(_ok("validate", valid=False)) == "invalid"

    def test_list_types(self) -> None:
        assert render_quiet(_ok("list_types", items=[{"name": "a"}, {"name": "b"}])) == "a\nb"
