"""
Engine configuration loaded from ``formsmith.toml``.

Example formsmith.toml:

    [engine]
    max_expression_length = 500
    cycle_policy = "isolate"        # or "invalidate_all" (default)

    [validation]
    unknown_rule_policy = "warn"    # or "ignore" (default)

Every key is optional; a missing file means defaults.
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from formsmith.core.errors import ConfigError, ErrorContext

CONFIG_FILENAME = "formsmith.toml"

CYCLE_POLICIES = ("invalidate_all", "isolate")
UNKNOWN_RULE_POLICIES = ("ignore", "warn")


@dataclass(frozen=True)
class EngineConfig:
    """Settings shared by the sandbox, the calculator and the form validator."""

    max_expression_length: int = 500
    cycle_policy: str = "invalidate_all"  # "invalidate_all" | "isolate"
    unknown_rule_policy: str = "ignore"  # "ignore" | "warn"

    def __post_init__(self) -> None:
        if (
            not isinstance(self.max_expression_length, int)
            or isinstance(self.max_expression_length, bool)
            or self.max_expression_length < 1
        ):
            raise ConfigError(
                f"max_expression_length must be a positive integer, "
                f"got {self.max_expression_length!r}"
            )
        if self.cycle_policy not in CYCLE_POLICIES:
            raise ConfigError(
                f"cycle_policy must be one of {', '.join(CYCLE_POLICIES)}, "
                f"got {self.cycle_policy!r}"
            )
        if self.unknown_rule_policy not in UNKNOWN_RULE_POLICIES:
            raise ConfigError(
                f"unknown_rule_policy must be one of {', '.join(UNKNOWN_RULE_POLICIES)}, "
                f"got {self.unknown_rule_policy!r}"
            )

    @property
    def isolate_cycles(self) -> bool:
        return self.cycle_policy == "isolate"

    @property
    def warn_unknown_rules(self) -> bool:
        return self.unknown_rule_policy == "warn"


DEFAULT_CONFIG = EngineConfig()


def _section(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table", ErrorContext(file=path))
    return section


def load_config(path: Path | None = None) -> EngineConfig:
    """
    Load engine settings.

    Args:
        path: Explicit config file. When omitted, ``formsmith.toml`` in the
            current directory is used if it exists.

    Returns:
        The parsed config, or ``DEFAULT_CONFIG`` when there is no file.

    Raises:
        ConfigError: Unreadable TOML or out-of-range values.
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
    if not path.exists():
        return DEFAULT_CONFIG

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read config: {e}", ErrorContext(file=path)) from e

    engine = _section(data, "engine", path)
    validation = _section(data, "validation", path)

    try:
        return EngineConfig(
            max_expression_length=engine.get(
                "max_expression_length", DEFAULT_CONFIG.max_expression_length
            ),
            cycle_policy=engine.get("cycle_policy", DEFAULT_CONFIG.cycle_policy),
            unknown_rule_policy=validation.get(
                "unknown_rule_policy", DEFAULT_CONFIG.unknown_rule_policy
            ),
        )
    except ConfigError as e:
        raise ConfigError(e.message, ErrorContext(file=path)) from e
