"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from formsmith._version import __version__
from formsmith.cli import app

ORDER_SCHEMA = """
id: order
name: Order
fields:
  - id: price
    type: number
    label: Unit Price
    required: true
  - id: qty
    type: number
    label: Quantity
    defaultValue: 1
  - id: subtotal
    type: number
    label: Subtotal
    derivedFrom:
      parentFields: [price, qty]
      computationLogic: price * qty
  - id: total
    type: number
    label: Total
    derivedFrom:
      parentFields: [subtotal]
      computationLogic: Math.round(subtotal * 1.2)
"""

CYCLE_SCHEMA = """
id: loop
name: Loop
fields:
  - id: x
    type: number
    label: X
    derivedFrom: {parentFields: [y], computationLogic: y + 1}
  - id: y
    type: number
    label: Y
    derivedFrom: {parentFields: [x], computationLogic: x + 1}
"""


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def order_file(tmp_path: Path) -> Path:
    path = tmp_path / "order.yaml"
    path.write_text(ORDER_SCHEMA)
    return path


@pytest.fixture
def values_file(tmp_path: Path) -> Path:
    path = tmp_path / "values.json"
    path.write_text(json.dumps({"price": 10, "qty": 2}))
    return path


class TestGlobalOptions:
    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"formsmith {__version__}" in result.output

    def test_bad_config(self, cli_runner, tmp_path: Path):
        config = tmp_path / "formsmith.toml"
        config.write_text('[engine]\ncycle_policy = "never"\n')
        result = cli_runner.invoke(app, ["--config", str(config), "functions"])
        assert result.exit_code == 1
        assert "Config error" in result.output


class TestValidateCommand:
    def test_valid_values(self, cli_runner, order_file: Path, values_file: Path):
        result = cli_runner.invoke(
            app, ["validate", str(order_file), "--values", str(values_file), "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload == {"isValid": True, "fieldErrors": {}, "derivedErrors": {}}

    def test_initial_values_fail_required(self, cli_runner, order_file: Path):
        result = cli_runner.invoke(app, ["validate", str(order_file), "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["isValid"] is False
        assert payload["fieldErrors"] == {"price": ["Unit Price is required"]}

    def test_table_output(self, cli_runner, order_file: Path, values_file: Path):
        result = cli_runner.invoke(app, ["validate", str(order_file), "--values", str(values_file)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_missing_schema(self, cli_runner, tmp_path: Path):
        result = cli_runner.invoke(app, ["validate", str(tmp_path / "none.yaml")])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestComputeCommand:
    def test_json(self, cli_runner, order_file: Path, values_file: Path):
        result = cli_runner.invoke(
            app, ["compute", str(order_file), "--values", str(values_file), "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["values"] == {"price": 10, "qty": 2, "subtotal": 20, "total": 24}
        assert payload["errors"] == {}

    def test_cycle_exits_nonzero(self, cli_runner, tmp_path: Path):
        path = tmp_path / "loop.yaml"
        path.write_text(CYCLE_SCHEMA)
        result = cli_runner.invoke(app, ["compute", str(path), "--json"])
        assert result.exit_code == 1
        assert "circular_dependency" in result.output

    def test_table_output(self, cli_runner, order_file: Path, values_file: Path):
        result = cli_runner.invoke(app, ["compute", str(order_file), "--values", str(values_file)])
        assert result.exit_code == 0
        assert "subtotal" in result.output


class TestCheckCommand:
    def test_valid(self, cli_runner):
        result = cli_runner.invoke(app, ["check", "a + b"])
        assert result.exit_code == 0
        assert "Expression is valid" in result.output

    def test_forbidden(self, cli_runner):
        result = cli_runner.invoke(app, ["check", "process.exit()"])
        assert result.exit_code == 1
        assert "process" in result.output

    def test_unknown_variables(self, cli_runner):
        result = cli_runner.invoke(app, ["check", "a + b", "--var", "a"])
        assert result.exit_code == 1
        assert "Unknown variables: b" in result.output


class TestEvalCommand:
    def test_numbers(self, cli_runner):
        result = cli_runner.invoke(
            app, ["eval", "price * qty", "--set", "price=2.5", "--set", "qty=4"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == 10

    def test_text_values(self, cli_runner):
        result = cli_runner.invoke(app, ["eval", "'Hi ' + name", "--set", "name=Ada"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == "Hi Ada"

    def test_forbidden(self, cli_runner):
        result = cli_runner.invoke(app, ["eval", "process"])
        assert result.exit_code == 1
        assert "ForbiddenConstruct" in result.output

    def test_bad_assignment(self, cli_runner):
        result = cli_runner.invoke(app, ["eval", "a", "--set", "novalue"])
        assert result.exit_code == 2


class TestFunctionsCommand:
    def test_lists_namespaces(self, cli_runner):
        result = cli_runner.invoke(app, ["functions"])
        assert result.exit_code == 0
        assert "Math" in result.output
        assert "String" in result.output
