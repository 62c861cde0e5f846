"""WriteService: the persistence operation context.

Validated path:  RESOLVE → ASSIGN → PRE-WRITE → RULES → POST-VALIDATION → PERSIST
Unchecked path:  RESOLVE → PERSIST

The validated path builds a fresh :class:`AssignmentSet` from a copy of the
caller's values, so pre-write mutations never leak back to the caller or
into a retried write. Validation finishes before the transaction opens;
a rejected write never touches the database.

The unchecked path (``insert_unchecked`` / ``update_unchecked``) is an
explicit escape hatch: the raw mapping goes straight to the table and no
hook or rule runs. There is no fallback between the two paths.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, insert, update
from sqlalchemy.exc import DBAPIError, IntegrityError

from writeguard.config.logging import write_context
from writeguard.domain.assignments import AssignmentSet
from writeguard.domain.errors import HookContractViolation
from writeguard.domain.hooks import validate_write
from writeguard.domain.types import OperationKind
from writeguard.services.base import BaseService
from writeguard.services.contracts import (
    PropertyInfo,
    RuleInfo,
    TypeInfo,
    TypeListData,
    ValidationFailureDetail,
    ValidationResultData,
    WriteResultData,
    dump_validated,
)
from writeguard.services.result import ErrorCode, ServiceError, ServiceResult
from writeguard.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from writeguard.domain.descriptors import TypeDescriptor
    from writeguard.domain.engine import ValidationRun

logger = logging.getLogger(__name__)


def _fail(op: str, code: str, message: str, **detail: Any) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=detail),
    )


class WriteService(BaseService):
    """Validated and unchecked inserts/updates against registered types."""

    # ------------------------------------------------------------------
    # Validated path
    # ------------------------------------------------------------------

    @traced
    def insert(self, type_name: str, values: Mapping[str, Any]) -> ServiceResult:
        """Validate *values* for an insert and persist them if valid."""
        return self._validated_write("insert", OperationKind.INSERT, type_name, values, None)

    @traced
    def update(
        self,
        type_name: str,
        key: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> ServiceResult:
        """Validate *values* for an update of the row at *key* and persist them if valid.

        Only the properties present in *values* are touched.
        """
        return self._validated_write("update", OperationKind.UPDATE, type_name, values, key)

    @traced
    def validate(
        self,
        type_name: str,
        operation: OperationKind | str,
        values: Mapping[str, Any],
    ) -> ServiceResult:
        """Dry run: run hooks and rules, never touch the database.

        ``ok`` reflects whether the pipeline could run; ``data["valid"]``
        carries the verdict.
        """
        op = "validate"
        try:
            operation = OperationKind(operation)
        except ValueError:
            return _fail(op, ErrorCode.INVALID_OPERATION, f"Unknown operation: {operation!r}")

        descriptor = self._lookup(op, type_name)
        if isinstance(descriptor, ServiceResult):
            return descriptor
        assignments = self._assign(op, descriptor, values)
        if isinstance(assignments, ServiceResult):
            return assignments
        with write_context(descriptor.name, str(operation)):
            run = self._run_pipeline(op, operation, descriptor, assignments)
        if isinstance(run, ServiceResult):
            return run

        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(
                ValidationResultData,
                {
                    "type": descriptor.name,
                    "operation": str(operation),
                    "valid": run.valid,
                    "errors": list(run.errors),
                    "invalid_properties": list(run.invalid_properties),
                    "values": assignments.changes(),
                },
            ),
        )

    # ------------------------------------------------------------------
    # Unchecked path
    # ------------------------------------------------------------------

    @traced
    def insert_unchecked(self, type_name: str, raw: Mapping[str, Any]) -> ServiceResult:
        """Insert *raw* as-is. No hook or rule runs."""
        op = "insert_unchecked"
        descriptor = self._lookup(op, type_name)
        if isinstance(descriptor, ServiceResult):
            return descriptor
        unknown = self._check_columns(op, descriptor, raw)
        if unknown is not None:
            return unknown
        with write_context(descriptor.name, str(OperationKind.INSERT)):
            logger.debug("Validation bypassed for insert into %s", descriptor.name)
            return self._persist(
                op, OperationKind.INSERT, descriptor, dict(raw), None, validated=False
            )

    @traced
    def update_unchecked(
        self,
        type_name: str,
        key: Mapping[str, Any],
        raw: Mapping[str, Any],
    ) -> ServiceResult:
        """Update the row at *key* with *raw* as-is. No hook or rule runs."""
        op = "update_unchecked"
        descriptor = self._lookup(op, type_name)
        if isinstance(descriptor, ServiceResult):
            return descriptor
        unknown = self._check_columns(op, descriptor, raw)
        if unknown is not None:
            return unknown
        with write_context(descriptor.name, str(OperationKind.UPDATE)):
            logger.debug("Validation bypassed for update of %s", descriptor.name)
            return self._persist(
                op, OperationKind.UPDATE, descriptor, dict(raw), key, validated=False
            )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_types(self) -> ServiceResult:
        """List registered types with their properties and rules."""
        items: list[dict[str, Any]] = []
        for name in self._store.registry.names():
            descriptor = self._store.registry.get(name)
            props = []
            for prop in descriptor.properties:
                rules = [
                    RuleInfo(
                        kind=str(r.kind),
                        description=r.describe(),
                        operations=sorted(str(o) for o in r.operations),
                        gate=str(r.gate),
                    )
                    for r in descriptor.rule_set.rules_for(prop)
                ]
                props.append(
                    PropertyInfo(
                        name=prop.name,
                        type=str(prop.declared_type),
                        nullable=prop.nullable,
                        persistent=prop.persistent,
                        rules=rules,
                    )
                )
            items.append(
                TypeInfo(
                    name=descriptor.name,
                    table=descriptor.table_name,
                    key=list(descriptor.key),
                    pre_write=descriptor.hooks.pre_write is not None,
                    post_validation=descriptor.hooks.post_validation is not None,
                    properties=props,
                ).model_dump()
            )
        return ServiceResult(
            ok=True,
            op="list_types",
            data=dump_validated(TypeListData, {"count": len(items), "items": items}),
        )

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _validated_write(
        self,
        op: str,
        operation: OperationKind,
        type_name: str,
        values: Mapping[str, Any],
        key: Mapping[str, Any] | None,
    ) -> ServiceResult:
        # ── RESOLVE ──────────────────────────────────────────
        descriptor = self._lookup(op, type_name)
        if isinstance(descriptor, ServiceResult):
            return descriptor

        # ── ASSIGN ───────────────────────────────────────────
        assignments = self._assign(op, descriptor, values)
        if isinstance(assignments, ServiceResult):
            return assignments

        with write_context(descriptor.name, str(operation)):
            # ── PRE-WRITE → RULES → POST-VALIDATION ─────────
            run = self._run_pipeline(op, operation, descriptor, assignments)
            if isinstance(run, ServiceResult):
                return run
            if not run.valid:
                return self._reject(op, operation, descriptor, run)

            # ── PERSIST ──────────────────────────────────────
            persistent = set(descriptor.persistent_names)
            row = {k: v for k, v in assignments.changes().items() if k in persistent}
            return self._persist(op, operation, descriptor, row, key, validated=True)

    def _lookup(self, op: str, type_name: str) -> TypeDescriptor | ServiceResult:
        try:
            return self._store.registry.get(type_name)
        except KeyError:
            return _fail(op, ErrorCode.UNKNOWN_TYPE, f"Unknown type: {type_name!r}", type=type_name)

    def _assign(
        self,
        op: str,
        descriptor: TypeDescriptor,
        values: Mapping[str, Any],
    ) -> AssignmentSet | ServiceResult:
        unknown = [name for name in values if not descriptor.has_property(name)]
        if unknown:
            return _fail(
                op,
                ErrorCode.UNKNOWN_PROPERTY,
                f"Type {descriptor.name!r} has no properties: {', '.join(unknown)}",
                type=descriptor.name,
                properties=unknown,
            )
        return AssignmentSet(dict(values))

    def _check_columns(
        self,
        op: str,
        descriptor: TypeDescriptor,
        raw: Mapping[str, Any],
    ) -> ServiceResult | None:
        columns = self._store.table_for(descriptor).c
        unknown = [name for name in raw if name not in columns]
        if not unknown:
            return None
        return _fail(
            op,
            ErrorCode.UNKNOWN_PROPERTY,
            f"Table {descriptor.table_name!r} has no columns: {', '.join(unknown)}",
            type=descriptor.name,
            properties=unknown,
        )

    def _run_pipeline(
        self,
        op: str,
        operation: OperationKind,
        descriptor: TypeDescriptor,
        assignments: AssignmentSet,
    ) -> ValidationRun | ServiceResult:
        with trace_span("validate") as span:
            try:
                run = validate_write(operation, descriptor, assignments)
            except HookContractViolation as exc:
                logger.error("Hook contract violated for %s: %s", descriptor.name, exc)
                return _fail(
                    op,
                    ErrorCode.HOOK_CONTRACT_VIOLATION,
                    str(exc),
                    type=descriptor.name,
                    operation=str(operation),
                )
            except Exception as exc:
                logger.exception("Hook failed for %s", descriptor.name)
                return _fail(
                    op,
                    ErrorCode.HOOK_FAILED,
                    f"Hook or custom rule on {descriptor.name!r} raised: {exc}",
                    type=descriptor.name,
                    operation=str(operation),
                    exception=type(exc).__name__,
                )
            if span:
                span.annotate("errors", len(run.errors))
        return run

    def _reject(
        self,
        op: str,
        operation: OperationKind,
        descriptor: TypeDescriptor,
        run: ValidationRun,
    ) -> ServiceResult:
        logger.info(
            "Rejected %s on %s: %d validation error(s)",
            operation,
            descriptor.name,
            len(run.errors),
        )
        warnings: list[str] = []
        self._dispatch_event(
            "post_reject",
            {
                "type_name": descriptor.name,
                "operation": str(operation),
                "errors": list(run.errors),
            },
            warnings,
        )
        detail = dump_validated(
            ValidationFailureDetail,
            {
                "type": descriptor.name,
                "operation": str(operation),
                "errors": list(run.errors),
                "invalid_properties": list(run.invalid_properties),
            },
        )
        return ServiceResult(
            ok=False,
            op=op,
            warnings=warnings,
            error=ServiceError(
                code=ErrorCode.VALIDATION_FAILED,
                message=" ".join(run.errors) or "Write rejected by validation",
                detail=detail,
            ),
        )

    def _persist(
        self,
        op: str,
        operation: OperationKind,
        descriptor: TypeDescriptor,
        row: dict[str, Any],
        key: Mapping[str, Any] | None,
        *,
        validated: bool,
    ) -> ServiceResult:
        warnings: list[str] = []
        table = self._store.table_for(descriptor)

        if operation is OperationKind.UPDATE:
            key = dict(key or {})
            if not descriptor.key or set(key) != set(descriptor.key):
                return _fail(
                    op,
                    ErrorCode.INVALID_KEY,
                    f"Update of {descriptor.name!r} needs key {list(descriptor.key)}, "
                    f"got {sorted(key)}",
                    type=descriptor.name,
                )
            if not row:
                warnings.append("No persistent values to update")
                return self._written(op, operation, descriptor, row, key, 0, validated, warnings)

        with trace_span("persist"):
            try:
                with self._store.transaction() as conn:
                    if operation is OperationKind.INSERT:
                        stmt = insert(table).values(row) if row else insert(table)
                        result = conn.execute(stmt)
                        key = {
                            name: value
                            for name, value in zip(
                                descriptor.key, result.inserted_primary_key or (), strict=False
                            )
                        }
                    else:
                        assert key is not None
                        where = and_(*(table.c[name] == value for name, value in key.items()))
                        result = conn.execute(update(table).where(where).values(row))
                    rowcount = result.rowcount
            except (IntegrityError, DBAPIError) as exc:
                logger.warning("Database rejected %s on %s: %s", operation, descriptor.name, exc)
                return _fail(
                    op,
                    ErrorCode.DATABASE_ERROR,
                    str(exc.orig) if exc.orig is not None else str(exc),
                    type=descriptor.name,
                    operation=str(operation),
                )

        if operation is OperationKind.UPDATE and rowcount == 0:
            return _fail(
                op,
                ErrorCode.NOT_FOUND,
                f"No {descriptor.name!r} row matches key {key}",
                type=descriptor.name,
                key=key,
            )

        self._dispatch_event(
            "post_write",
            {
                "type_name": descriptor.name,
                "operation": str(operation),
                "values": dict(row),
                "validated": validated,
            },
            warnings,
        )
        return self._written(op, operation, descriptor, row, key, rowcount, validated, warnings)

    @staticmethod
    def _written(
        op: str,
        operation: OperationKind,
        descriptor: TypeDescriptor,
        row: dict[str, Any],
        key: Mapping[str, Any] | None,
        rowcount: int,
        validated: bool,
        warnings: list[str],
    ) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=op,
            warnings=warnings,
            data=dump_validated(
                WriteResultData,
                {
                    "type": descriptor.name,
                    "operation": str(operation),
                    "validated": validated,
                    "values": row,
                    "rowcount": rowcount,
                    "key": dict(key or {}),
                },
            ),
        )
