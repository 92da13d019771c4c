"""
Allow-listed function namespaces for derived-field expressions.

``Math``, ``String`` and ``Number`` are the only callable surface an
expression can reach. Every function takes already-evaluated argument
values, coerces them the way the browser builtins do, and returns a
primitive. The registries are read-only mappings shared by all calls.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from formsmith.core.expression_lang.coercion import js_number, to_js_string, to_number

JsFunction = Callable[..., Any]

_PARSE_FLOAT_RE = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _num(args: tuple[Any, ...], index: int) -> int | float:
    """Numeric argument, NaN when the caller omitted it."""
    if index >= len(args):
        return math.nan
    return to_number(args[index])


def _str(args: tuple[Any, ...], index: int) -> str:
    if index >= len(args):
        return "undefined"
    return to_js_string(args[index])


def _finite_op(fn: Callable[[float], int | float], x: int | float) -> int | float:
    if not math.isfinite(x):
        return x
    return js_number(fn(x))


def js_pow(base: int | float, exponent: int | float) -> int | float:
    """``**`` / ``Math.pow``: float semantics, overflow to Infinity, domain errors to NaN."""
    if math.isnan(base) or math.isnan(exponent):
        return math.nan
    if exponent == 0:
        return 1
    if base == 0 and exponent < 0:
        return math.inf
    try:
        result = math.pow(base, exponent)
    except OverflowError:
        negative = base < 0 and float(exponent).is_integer() and int(exponent) % 2 == 1
        return -math.inf if negative else math.inf
    except ValueError:
        return math.nan
    return js_number(result)


# ---------------------------------------------------------------------------
# Math
# ---------------------------------------------------------------------------


def _math_abs(*args: Any) -> int | float:
    return js_number(abs(_num(args, 0)))


def _math_ceil(*args: Any) -> int | float:
    return _finite_op(math.ceil, _num(args, 0))


def _math_floor(*args: Any) -> int | float:
    return _finite_op(math.floor, _num(args, 0))


def _math_round(*args: Any) -> int | float:
    # Half-way cases round towards +Infinity, unlike Python's round()
    return _finite_op(lambda x: math.floor(x + 0.5), _num(args, 0))


def _math_max(*args: Any) -> int | float:
    values = [to_number(a) for a in args]
    if any(math.isnan(v) for v in values):
        return math.nan
    return max(values, default=-math.inf)


def _math_min(*args: Any) -> int | float:
    values = [to_number(a) for a in args]
    if any(math.isnan(v) for v in values):
        return math.nan
    return min(values, default=math.inf)


def _math_pow(*args: Any) -> int | float:
    return js_pow(_num(args, 0), _num(args, 1))


def _math_sqrt(*args: Any) -> int | float:
    x = _num(args, 0)
    if math.isnan(x) or x < 0:
        return math.nan
    if math.isinf(x):
        return x
    return js_number(math.sqrt(x))


# ---------------------------------------------------------------------------
# String
# ---------------------------------------------------------------------------


def _string_concat(*args: Any) -> str:
    return "".join(to_js_string(a) for a in args)


def _string_to_lower(*args: Any) -> str:
    return _str(args, 0).lower()


def _string_to_upper(*args: Any) -> str:
    return _str(args, 0).upper()


def _string_trim(*args: Any) -> str:
    return _str(args, 0).strip()


def _clamp_index(value: int | float, length: int) -> int:
    if math.isnan(value):
        return 0
    if value == math.inf:
        return length
    if value == -math.inf:
        return 0
    return max(0, min(int(value), length))


def _string_substring(*args: Any) -> str:
    text = _str(args, 0)
    start = _clamp_index(_num(args, 1), len(text))
    end = len(text) if len(args) < 3 or args[2] is None else _clamp_index(_num(args, 2), len(text))
    if start > end:
        start, end = end, start
    return text[start:end]


# ---------------------------------------------------------------------------
# Number
# ---------------------------------------------------------------------------


def _number_parse_float(*args: Any) -> int | float:
    m = _PARSE_FLOAT_RE.match(_str(args, 0).lstrip())
    if m is None:
        return math.nan
    return js_number(float(m.group(0).replace("Infinity", "inf")))


def _number_parse_int(*args: Any) -> int | float:
    text = _str(args, 0).strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    radix = 0
    if len(args) > 1 and args[1] is not None:
        radix_value = to_number(args[1])
        radix = 0 if not math.isfinite(radix_value) else int(radix_value)
    if radix == 0:
        radix = 10
        if text[:2].lower() == "0x":
            radix = 16
            text = text[2:]
    elif radix == 16 and text[:2].lower() == "0x":
        text = text[2:]
    if radix < 2 or radix > 36:
        return math.nan

    valid = _DIGITS[:radix]
    digits = ""
    for ch in text.lower():
        if ch not in valid:
            break
        digits += ch
    if not digits:
        return math.nan
    return js_number(sign * int(digits, radix))


def _number_is_nan(*args: Any) -> bool:
    return math.isnan(_num(args, 0))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

FUNCTION_NAMESPACES: Mapping[str, Mapping[str, JsFunction]] = MappingProxyType(
    {
        "Math": MappingProxyType(
            {
                "abs": _math_abs,
                "ceil": _math_ceil,
                "floor": _math_floor,
                "max": _math_max,
                "min": _math_min,
                "round": _math_round,
                "pow": _math_pow,
                "sqrt": _math_sqrt,
            }
        ),
        "String": MappingProxyType(
            {
                "concat": _string_concat,
                "toLowerCase": _string_to_lower,
                "toUpperCase": _string_to_upper,
                "trim": _string_trim,
                "substring": _string_substring,
            }
        ),
        "Number": MappingProxyType(
            {
                "parseFloat": _number_parse_float,
                "parseInt": _number_parse_int,
                "isNaN": _number_is_nan,
            }
        ),
    }
)

NAMESPACE_CONSTANTS: Mapping[str, Mapping[str, float]] = MappingProxyType(
    {"Math": MappingProxyType({"PI": math.pi, "E": math.e})}
)


def get_function(namespace: str, name: str) -> JsFunction | None:
    """Look up an allow-listed function, or None if it is not exposed."""
    functions = FUNCTION_NAMESPACES.get(namespace)
    if functions is None:
        return None
    return functions.get(name)


def get_constant(namespace: str, name: str) -> float | None:
    constants = NAMESPACE_CONSTANTS.get(namespace)
    if constants is None:
        return None
    return constants.get(name)


def available_functions() -> dict[str, list[str]]:
    """The callable surface, namespace -> function names, for expression editors."""
    return {namespace: list(functions) for namespace, functions in FUNCTION_NAMESPACES.items()}
