"""ServiceResult: what every WriteService method returns.

A refused write is data, not an exception: callers branch on ``ok`` and,
when it is False, on ``error.code``. Only ``VALIDATION_FAILED`` means the
registered rules or hooks refused the values; every other code is a caller
or storage problem.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    HOOK_CONTRACT_VIOLATION = "HOOK_CONTRACT_VIOLATION"
    HOOK_FAILED = "HOOK_FAILED"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
    NOT_FOUND = "NOT_FOUND"
    INVALID_KEY = "INVALID_KEY"
    INVALID_OPERATION = "INVALID_OPERATION"
    DATABASE_ERROR = "DATABASE_ERROR"


class ServiceError(BaseModel):
    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service call.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"insert"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, such as a plugin failing on ``post_write``.
        error: Structured error if ``ok`` is False.
        meta: Telemetry when verbose.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @property
    def rejected(self) -> bool:
        """True when validation refused the write."""
        return self.error is not None and self.error.code == ErrorCode.VALIDATION_FAILED

    @property
    def errors(self) -> list[str]:
        """Validation messages in evaluation order, or [] if not rejected."""
        if not self.rejected:
            return []
        return list(self.error.detail.get("errors", []))  # type: ignore[union-attr]

    @property
    def invalid_properties(self) -> list[str]:
        if not self.rejected:
            return []
        return list(self.error.detail.get("invalid_properties", []))  # type: ignore[union-attr]
