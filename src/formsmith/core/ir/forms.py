"""
Form schema types for formsmith IR.

A schema is an ordered list of typed fields. Each field may carry
declarative validation rules and, optionally, a derivation config that
makes its value computed from other fields rather than user-entered.

Serialized schemas use camelCase keys (``defaultValue``, ``derivedFrom``,
``parentFields``, ``computationLogic``, ``createdAt``); snake_case names are
accepted as well.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_WHITESPACE_RE = re.compile(r"\s+")


class FieldType(StrEnum):
    """Closed set of field kinds a form can contain."""

    TEXT = "text"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"


class RuleType(StrEnum):
    """Validation rule kinds understood by the rule validator."""

    NOT_EMPTY = "notEmpty"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    EMAIL = "email"
    CUSTOM_PASSWORD = "customPassword"


class ValidationRule(BaseModel):
    """
    A declarative constraint on one field's value.

    ``type`` is kept as a plain string so that schemas authored by newer
    tooling still load; rule kinds this engine does not know always pass.
    """

    type: str = Field(description="Rule kind, normally a RuleType value")
    value: int | float | str | None = Field(
        default=None, description="Bound for minLength / maxLength"
    )
    message: str = Field(min_length=1, description="Message reported on failure")

    model_config = ConfigDict(frozen=True)

    @property
    def rule_type(self) -> RuleType | None:
        """The recognised rule kind, or None for unknown types."""
        try:
            return RuleType(self.type)
        except ValueError:
            return None


class DerivedFieldConfig(BaseModel):
    """
    How a derived field computes its value.

    Example:
        DerivedFieldConfig(parent_fields=["price", "qty"],
                           computation_logic="price * qty")
    """

    parent_fields: list[str] = Field(
        default_factory=list,
        alias="parentFields",
        description="Ids of the fields the expression reads",
    )
    computation_logic: str = Field(
        default="",
        alias="computationLogic",
        description="Expression text evaluated in the sandbox",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class FormField(BaseModel):
    """A single field definition within a form schema."""

    id: str = Field(min_length=1, description="Stable field identity")
    type: FieldType
    label: str = Field(description="Display label")
    required: bool = False
    default_value: Any = Field(default=None, alias="defaultValue")
    options: list[str] = Field(default_factory=list)
    validation: list[ValidationRule] = Field(default_factory=list)
    derived_from: DerivedFieldConfig | None = Field(default=None, alias="derivedFrom")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def _check_options(self) -> FormField:
        # A checkbox without options is a single boolean toggle
        if self.type in (FieldType.SELECT, FieldType.RADIO) and not self.options:
            raise ValueError(f"Field '{self.id}' of type {self.type} requires options")
        return self

    @property
    def is_derived(self) -> bool:
        return self.derived_from is not None

    @property
    def has_default(self) -> bool:
        """True when the schema supplied a default, even an explicit null."""
        return "default_value" in self.model_fields_set

    @property
    def variable_name(self) -> str:
        """Expression variable name generated from the label (``Unit Price`` -> ``unit_price``)."""
        return _WHITESPACE_RE.sub("_", self.label.strip().lower())


class FormSchema(BaseModel):
    """A named, ordered collection of fields."""

    id: str
    name: str
    created_at: datetime | str | None = Field(default=None, alias="createdAt")
    fields: list[FormField] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> FormSchema:
        seen: set[str] = set()
        for fld in self.fields:
            if fld.id in seen:
                raise ValueError(f"Duplicate field id '{fld.id}' in form '{self.id}'")
            seen.add(fld.id)
        return self

    def field_map(self) -> dict[str, FormField]:
        return {fld.id: fld for fld in self.fields}

    def get_field(self, field_id: str) -> FormField | None:
        for fld in self.fields:
            if fld.id == field_id:
                return fld
        return None

    def derived_fields(self) -> list[FormField]:
        """Derived fields in declaration order."""
        return [fld for fld in self.fields if fld.is_derived]
