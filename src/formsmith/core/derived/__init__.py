"""
Derived field engine: dependency ordering and recomputation.
"""

from formsmith.core.derived.calculator import (
    compute_value,
    update_derived_fields,
)
from formsmith.core.derived.graph import (
    DependencyResolution,
    detect_cycles,
    resolve_evaluation_order,
)

__all__ = [
    "DependencyResolution",
    "compute_value",
    "detect_cycles",
    "resolve_evaluation_order",
    "update_derived_fields",
]
