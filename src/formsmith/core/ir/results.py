"""
Result types returned by the validation and derived-field engines.

These are plain dataclasses rather than pydantic models: they are built
fresh on every call, may carry live exception objects, and never cross a
serialization boundary without going through ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Severity(StrEnum):
    """Severity of an enhanced validation message."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DerivedErrorType(StrEnum):
    """Kinds of failure a derived field computation can report."""

    INVALID_EXPRESSION = "invalid_expression"
    MISSING_PARENT = "missing_parent"
    EVALUATION_ERROR = "evaluation_error"
    CIRCULAR_DEPENDENCY = "circular_dependency"


@dataclass(frozen=True)
class FieldValidationResult:
    """Outcome of validating one value against a rule list."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FormValidationResult:
    """Outcome of validating a whole value map against a schema."""

    is_valid: bool
    field_errors: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class EnhancedMessage:
    """Presentation hint for a rule: headline, actionable suggestion, severity."""

    message: str
    suggestion: str
    severity: Severity


@dataclass(frozen=True)
class DerivedFieldError:
    """A derived field that could not be (re)computed."""

    type: DerivedErrorType
    message: str
    field_id: str | None = None
    original_error: BaseException | None = field(default=None, compare=False, repr=False)

    def with_field(self, field_id: str) -> DerivedFieldError:
        return DerivedFieldError(
            type=self.type,
            message=self.message,
            field_id=field_id,
            original_error=self.original_error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": str(self.type), "message": self.message}
        if self.field_id is not None:
            data["fieldId"] = self.field_id
        return data


@dataclass(frozen=True)
class ComputeResult:
    """Value of a single derived field, or the reason it has none."""

    value: Any = None
    error: DerivedFieldError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DerivedUpdateResult:
    """New value map after a recompute pass plus per-field errors."""

    values: dict[str, Any]
    errors: dict[str, DerivedFieldError] = field(default_factory=dict)


@dataclass
class FormState:
    """
    Runtime state of one form session.

    Owned by the caller; the engine only ever returns fresh instances.
    ``derived_errors`` is reported out-of-band so a broken derived field
    keeps displaying its last good value.
    """

    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)
    touched: dict[str, bool] = field(default_factory=dict)
    is_valid: bool = False
    derived_errors: dict[str, DerivedFieldError] = field(default_factory=dict)
