"""Tests for pre-write and post-validation hooks and the validate_write pipeline."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from writeguard.domain import (
    AssignmentSet,
    HookContractViolation,
    OperationKind,
    SemanticType,
    TypeBuilder,
    custom,
    length,
    present,
    validate_write,
)

INSERT = OperationKind.INSERT
UPDATE = OperationKind.UPDATE
NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


def _stamp(operation: OperationKind, assignments: AssignmentSet) -> None:
    if operation is OperationKind.INSERT:
        assignments.set("createdAt", NOW)


class TestPreWrite:
    def test_insert_sets_created_at_seen_by_rules(self) -> None:
        seen: list[object] = []
        descriptor = (
            TypeBuilder("t")
            .property("createdAt", SemanticType.DATETIME)
            .rule("createdAt", custom(lambda op, p, v, e: seen.append(v) or True))
            .pre_write(_stamp)
            .build()
        )
        assignments = AssignmentSet()
        run = validate_write(INSERT, descriptor, assignments)
        assert run.valid
        assert assignments.get("createdAt").value == NOW
        assert seen == [NOW]

    def test_update_leaves_created_at_unset(self) -> None:
        descriptor = (
            TypeBuilder("t")
            .property("createdAt", SemanticType.DATETIME)
            .rule("createdAt", present(on_update=False))
            .pre_write(_stamp)
            .build()
        )
        assignments = AssignmentSet()
        assert validate_write(UPDATE, descriptor, assignments).valid
        assert assignments.get("createdAt").is_unset

    def test_assignments_frozen_after_pre_write(self) -> None:
        descriptor = TypeBuilder("t").property("p").build()
        assignments = AssignmentSet()
        validate_write(INSERT, descriptor, assignments)
        assert assignments.frozen

    def test_async_pre_write_rejected(self) -> None:
        async def hook(operation, assignments):
            return None

        with pytest.raises(HookContractViolation):
            TypeBuilder("t").pre_write(hook)

    def test_pre_write_returning_awaitable(self) -> None:
        async def later():
            return None

        descriptor = TypeBuilder("t").pre_write(lambda op, a: later()).build()
        with pytest.raises(HookContractViolation, match="awaitable"):
            validate_write(INSERT, descriptor, AssignmentSet())


class TestPostValidation:
    def test_veto_despite_valid_fields(self) -> None:
        def veto(operation, assignments, field_valid, errors):
            errors.append("Orders are closed today.")
            return False

        descriptor = (
            TypeBuilder("t").property("p").rule("p", length(max=5)).post_validation(veto).build()
        )
        run = validate_write(INSERT, descriptor, AssignmentSet({"p": "ok"}))
        assert not run.valid
        assert "Orders are closed today." in run.errors
        assert run.invalid_properties == ()

    def test_receives_field_result_and_errors(self) -> None:
        received: dict[str, object] = {}

        def inspect_hook(operation, assignments, field_valid, errors):
            received.update(operation=operation, field_valid=field_valid, errors=list(errors))
            return field_valid

        descriptor = (
            TypeBuilder("t")
            .property("p")
            .rule("p", length(max=1))
            .post_validation(inspect_hook)
            .build()
        )
        run = validate_write(UPDATE, descriptor, AssignmentSet({"p": "long"}))
        assert not run.valid
        assert received["operation"] is UPDATE
        assert received["field_valid"] is False
        assert len(received["errors"]) == 1  # type: ignore[arg-type]

    def test_hook_verdict_is_final(self) -> None:
        descriptor = (
            TypeBuilder("t")
            .property("p")
            .rule("p", length(max=1))
            .post_validation(lambda op, a, valid, errors: True)
            .build()
        )
        run = validate_write(INSERT, descriptor, AssignmentSet({"p": "long"}))
        assert run.valid
        assert len(run.errors) == 1

    def test_without_hook_field_result_stands(self) -> None:
        descriptor = TypeBuilder("t").property("p").rule("p", length(max=1)).build()
        assert not validate_write(INSERT, descriptor, AssignmentSet({"p": "xx"})).valid

    def test_non_bool_verdict(self) -> None:
        descriptor = TypeBuilder("t").post_validation(lambda op, a, v, e: "yes").build()
        with pytest.raises(HookContractViolation, match="must return bool"):
            validate_write(INSERT, descriptor, AssignmentSet())

    def test_async_post_validation_rejected(self) -> None:
        async def hook(operation, assignments, field_valid, errors):
            return True

        with pytest.raises(HookContractViolation):
            TypeBuilder("t").post_validation(hook)

    def test_cannot_mutate_assignments(self) -> None:
        def meddle(operation, assignments, field_valid, errors):
            assignments.set("p", "changed")
            return True

        descriptor = TypeBuilder("t").property("p").post_validation(meddle).build()
        with pytest.raises(HookContractViolation, match="read-only"):
            validate_write(INSERT, descriptor, AssignmentSet({"p": "x"}))

    def test_silent_reject_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        descriptor = TypeBuilder("t").post_validation(lambda op, a, v, e: False).build()
        with caplog.at_level(logging.WARNING, logger="writeguard.domain.hooks"):
            run = validate_write(INSERT, descriptor, AssignmentSet())
        assert not run.valid
        assert run.errors == ()
        assert "post_validation.silent_reject" in caplog.text
