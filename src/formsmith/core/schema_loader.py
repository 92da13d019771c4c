"""
Loading of form schemas and value maps from disk.

Schemas and value maps are JSON (``.json``) or YAML (anything else). Keys
follow the builder's camelCase spelling (``derivedFrom``, ``parentFields``,
``computationLogic``); snake_case is accepted too.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from formsmith.core.errors import ErrorContext, SchemaError
from formsmith.core.ir import FormSchema

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> Any:
    """Parse a JSON or YAML file."""
    if not path.exists():
        raise SchemaError(f"File not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Cannot read {path}: {e}", ErrorContext(file=path)) from e

    try:
        if path.suffix.lower() == ".json":
            return json.loads(content)
        return yaml.safe_load(content)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}", ErrorContext(file=path)) from e
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}", ErrorContext(file=path)) from e


def parse_schema(data: Any, source: Path | None = None) -> FormSchema:
    """Build a FormSchema from already-parsed data.

    Raises:
        SchemaError: If the data is not a mapping or fails model validation.
    """
    if not isinstance(data, dict):
        raise SchemaError(
            f"Form schema must be a mapping, got {type(data).__name__}",
            ErrorContext(file=source),
        )
    try:
        return FormSchema.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid form schema: {e}", ErrorContext(file=source)) from e


def load_schema(path: Path) -> FormSchema:
    """Load a form schema from a JSON or YAML file.

    Args:
        path: Schema file.

    Returns:
        Validated FormSchema.

    Raises:
        SchemaError: Missing file, unparseable content, or invalid schema.
    """
    schema = parse_schema(_read_document(path), source=path)
    logger.debug(
        "Loaded form '%s' from %s (%d fields, %d derived)",
        schema.id,
        path,
        len(schema.fields),
        len(schema.derived_fields()),
    )
    return schema


def load_values(path: Path) -> dict[str, Any]:
    """Load a value map (field id -> value) from a JSON or YAML file.

    An empty YAML document is an empty map.

    Raises:
        SchemaError: Missing file, unparseable content, or not a mapping.
    """
    data = _read_document(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaError(
            f"Value map must be a mapping, got {type(data).__name__}",
            ErrorContext(file=path),
        )
    return {str(key): value for key, value in data.items()}
