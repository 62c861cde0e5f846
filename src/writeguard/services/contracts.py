"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``errors`` vs ``messages``)
fail fast in tests and during development.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class WriteResultData(BaseModel):
    """Payload contract for ``WriteService.insert`` / ``update`` and their unchecked forms."""

    type: str
    operation: Literal["insert", "update"]
    validated: bool
    values: dict[str, Any]
    rowcount: int
    key: dict[str, Any] = Field(default_factory=dict)


class ValidationResultData(BaseModel):
    """Payload contract for ``WriteService.validate``."""

    type: str
    operation: Literal["insert", "update"]
    valid: bool
    errors: list[str]
    invalid_properties: list[str]
    values: dict[str, Any]


class ValidationFailureDetail(BaseModel):
    """Detail payload of a ``VALIDATION_FAILED`` error."""

    type: str
    operation: Literal["insert", "update"]
    errors: list[str]
    invalid_properties: list[str]


class RuleInfo(BaseModel):
    """One rule in a type listing."""

    kind: str
    description: str
    operations: list[str]
    gate: str


class PropertyInfo(BaseModel):
    """One property in a type listing."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str
    nullable: bool
    persistent: bool
    rules: list[RuleInfo] = Field(default_factory=list)


class TypeInfo(BaseModel):
    """One registered type."""

    name: str
    table: str
    key: list[str]
    pre_write: bool
    post_validation: bool
    properties: list[PropertyInfo]


class TypeListData(BaseModel):
    """Payload contract for ``WriteService.list_types``."""

    count: int
    items: list[TypeInfo]
