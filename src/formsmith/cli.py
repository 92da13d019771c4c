"""
formsmith command line interface.

Commands:
- validate:  Recompute derived fields, then validate a value map
- compute:   Recompute derived fields and show the resulting values
- check:     Statically check an expression without running it
- eval:      Evaluate an expression in the sandbox
- functions: List the functions expressions may call
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from formsmith._version import __version__
from formsmith.core.config import DEFAULT_CONFIG, EngineConfig, load_config
from formsmith.core.derived import update_derived_fields
from formsmith.core.errors import ConfigError, ExpressionError, SchemaError
from formsmith.core.expression_lang import (
    available_functions,
    evaluate_expression,
    validate_expression_syntax,
)
from formsmith.core.expression_lang.coercion import to_js_string
from formsmith.core.form_state import initial_values
from formsmith.core.ir import DerivedFieldError, FormSchema
from formsmith.core.schema_loader import load_schema, load_values
from formsmith.core.validation import validate_form

app = typer.Typer(
    help="formsmith - validation and derived-field engine for form schemas",
    no_args_is_help=True,
)

console = Console()

LOG_LEVEL_ENV = "FORMSMITH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """DEBUG with --verbose, else FORMSMITH_LOG_LEVEL, else WARNING."""
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("formsmith").setLevel(level)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"formsmith {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to formsmith.toml (default: ./formsmith.toml if present)",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """formsmith CLI main callback for global options."""
    configure_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _engine_config(ctx: typer.Context) -> EngineConfig:
    return ctx.obj if isinstance(ctx.obj, EngineConfig) else DEFAULT_CONFIG


def _load_inputs(schema_file: Path, values_file: Path | None) -> tuple[FormSchema, dict[str, Any]]:
    """Schema plus a value map: initial values, overlaid with the values file if given."""
    try:
        schema = load_schema(schema_file)
        values = initial_values(schema)
        if values_file is not None:
            values.update(load_values(values_file))
    except SchemaError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    return schema, values


def _json_default(value: Any) -> str:
    return to_js_string(value)


def _print_derived_errors(errors: dict[str, DerivedFieldError]) -> None:
    table = Table(title="Derived field errors")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Message")
    for field_id, error in errors.items():
        table.add_row(field_id, str(error.type), escape(error.message))
    console.print(table)


@app.command(name="validate")
def validate_command(
    ctx: typer.Context,
    schema_file: Path = typer.Argument(..., help="Form schema (JSON or YAML)"),  # noqa: B008
    values_file: Path | None = typer.Option(  # noqa: B008
        None, "--values", help="Value map (JSON or YAML); defaults to initial values"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Recompute derived fields and validate the values. Exits 1 when invalid."""
    config = _engine_config(ctx)
    schema, values = _load_inputs(schema_file, values_file)

    derived = update_derived_fields(values, schema, config)
    result = validate_form(derived.values, schema, config)

    if as_json:
        payload = {
            "isValid": result.is_valid,
            "fieldErrors": result.field_errors,
            "derivedErrors": {fid: err.to_dict() for fid, err in derived.errors.items()},
        }
        typer.echo(json.dumps(payload, indent=2, default=_json_default))
    else:
        if derived.errors:
            _print_derived_errors(derived.errors)
        if result.is_valid:
            console.print(f"[green]✓[/green] Form '{escape(schema.name)}' is valid")
        else:
            table = Table(title=f"Validation errors: {escape(schema.name)}")
            table.add_column("Field", style="cyan")
            table.add_column("Message")
            for field_id, messages in result.field_errors.items():
                for message in messages:
                    table.add_row(field_id, escape(message))
            console.print(table)
            console.print(f"[red]✗[/red] {len(result.field_errors)} field(s) invalid")

    if not result.is_valid:
        raise typer.Exit(1)


@app.command(name="compute")
def compute_command(
    ctx: typer.Context,
    schema_file: Path = typer.Argument(..., help="Form schema (JSON or YAML)"),  # noqa: B008
    values_file: Path | None = typer.Option(  # noqa: B008
        None, "--values", help="Value map (JSON or YAML); defaults to initial values"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Recompute derived fields and print the resulting values. Exits 1 on derived errors."""
    config = _engine_config(ctx)
    schema, values = _load_inputs(schema_file, values_file)

    derived = update_derived_fields(values, schema, config)

    if as_json:
        payload = {
            "values": derived.values,
            "errors": {fid: err.to_dict() for fid, err in derived.errors.items()},
        }
        typer.echo(json.dumps(payload, indent=2, default=_json_default))
    else:
        table = Table(title=f"Values: {escape(schema.name)}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_column("Derived", justify="center")
        for fld in schema.fields:
            value = derived.values.get(fld.id)
            shown = json.dumps(value, default=_json_default)
            table.add_row(fld.id, escape(shown), "✓" if fld.is_derived else "")
        console.print(table)
        if derived.errors:
            _print_derived_errors(derived.errors)

    if derived.errors:
        raise typer.Exit(1)


@app.command(name="check")
def check_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Expression text"),
    variables: list[str] | None = typer.Option(  # noqa: B008
        None, "--var", help="Known variable name (repeatable); unknown names are reported"
    ),
) -> None:
    """Check an expression without evaluating it."""
    result = validate_expression_syntax(
        expression, variables if variables else None, config=_engine_config(ctx)
    )
    if result.is_valid:
        console.print("[green]✓[/green] Expression is valid")
        return
    console.print(f"[red]✗[/red] {escape(result.error or 'Invalid expression')}")
    raise typer.Exit(1)


def _parse_assignment(text: str) -> tuple[str, Any]:
    """``name=value``; the value is read as JSON when possible, else kept as text."""
    name, sep, raw = text.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected name=value, got {text!r}", param_hint="--set")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return name.strip(), value


@app.command(name="eval")
def eval_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Expression text"),
    assignments: list[str] | None = typer.Option(  # noqa: B008
        None, "--set", help="Variable binding name=value (repeatable)"
    ),
) -> None:
    """Evaluate an expression in the sandbox and print the result as JSON."""
    context = dict(_parse_assignment(a) for a in assignments or [])
    try:
        result = evaluate_expression(expression, context, config=_engine_config(ctx))
    except ExpressionError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {escape(e.message)}")
        raise typer.Exit(1)
    typer.echo(json.dumps(result, default=_json_default))


@app.command(name="functions")
def functions_command() -> None:
    """List the functions expressions may call."""
    table = Table(title="Available functions")
    table.add_column("Namespace", style="cyan")
    table.add_column("Functions")
    for namespace, names in available_functions().items():
        table.add_row(namespace, ", ".join(names))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
