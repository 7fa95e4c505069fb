"""Core (UI-agnostic) pivot engine.

This package contains:
- the record value model (text/number coercion, DataFrame adapter)
- pivot configuration types and normalization
- bucket filter evaluation and axis building
- metric aggregation and the pivot compiler
- flattening of pivot results for spreadsheet export
"""

from pivot_core.compiler import PivotNode, PivotResult, compile_pivot
from pivot_core.config import PivotConfig, normalize_config, validate_config
from pivot_core.export import flatten_result

__all__ = [
    "PivotConfig",
    "PivotNode",
    "PivotResult",
    "compile_pivot",
    "flatten_result",
    "normalize_config",
    "validate_config",
]
