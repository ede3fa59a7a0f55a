"""
Agent Utilities

Shared helpers for the insights agent and its pipeline stages: lenient
parameter parsing, non-throwing numeric/date parsing expressions, and
JSON coercion of numpy values.
"""

import math
import sys
from typing import Any, Dict, List, Optional

import numpy as np
import polars as pl


# Formats tried (in order) after the ISO "YYYY-MM-DD" prefix.
DATE_FORMATS = ("%Y/%m/%d", "%m/%d/%Y", "%d.%m.%Y")

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off"}


def parse_parameter(
    value: Any,
    expected_type: type,
    default: Any = None,
) -> Any:
    """
    Parse a parameter that might arrive as a string from a form or JSON body.

    Args:
        value: The parameter value to parse
        expected_type: The expected Python type (bool, int, float, str)
        default: Value returned when parsing fails

    Returns:
        Parsed value of the expected type, or default if parsing fails

    Examples:
        >>> parse_parameter("3", int, 5)
        3
        >>> parse_parameter("false", bool, True)
        False
        >>> parse_parameter(" rfm ", str)
        'rfm'
    """
    if value is None:
        return default

    # bool is a subclass of int, check it first
    if expected_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return default

    if isinstance(value, expected_type) and not isinstance(value, (bool, str)):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default

        if expected_type in (int, float):
            try:
                number = float(text)
            except ValueError:
                return default
            if not math.isfinite(number):
                return default
            return int(number) if expected_type is int else number

        if expected_type is str:
            return text

    if expected_type is int and isinstance(value, float) and math.isfinite(value):
        return int(value)
    if expected_type is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if expected_type is str:
        return str(value)

    return default


def parse_parameters(
    parameters: Dict[str, Any],
    parameter_specs: Dict[str, tuple]
) -> Dict[str, Any]:
    """
    Parse multiple parameters at once using specifications.

    Args:
        parameters: Dictionary of parameter values
        parameter_specs: Dictionary of parameter_name -> (expected_type, default_value)

    Returns:
        Dictionary of parsed parameters
    """
    parsed = {}
    for param_name, (expected_type, default) in parameter_specs.items():
        parsed[param_name] = parse_parameter(parameters.get(param_name), expected_type, default)
    return parsed


def normalize_column_names(
    columns: List[str],
    available_columns: List[str],
    case_sensitive: bool = False
) -> List[str]:
    """
    Normalize column names to match available columns.

    Handles case mismatches and whitespace differences. Names with no match
    are dropped from the result.
    """
    if case_sensitive:
        col_map = {col: col for col in available_columns}
    else:
        col_map = {}
        for col in available_columns:
            col_map.setdefault(col.strip().lower(), col)

    normalized = []
    for col in columns:
        key = col if case_sensitive else col.strip().lower()
        if key in col_map:
            normalized.append(col_map[key])
    return normalized


def resolve_column(requested: Optional[str], available: List[str]) -> Optional[str]:
    """Resolve a user supplied column name, exact match first, then case-insensitive."""
    if not requested:
        return None
    if requested in available:
        return requested
    normalized = normalize_column_names([requested], available, case_sensitive=False)
    return normalized[0] if normalized else None


def numeric_expr(column: str) -> pl.Expr:
    """Parse a text column as Float64; unparseable and non-finite values become null."""
    parsed = (
        pl.col(column)
        .cast(pl.Utf8, strict=False)
        .str.strip_chars()
        .cast(pl.Float64, strict=False)
    )
    return pl.when(parsed.is_finite()).then(parsed).otherwise(None)


def date_expr(column: str) -> pl.Expr:
    """Parse a text column as Date; values matching no known format become null."""
    raw = pl.col(column).cast(pl.Utf8, strict=False).str.strip_chars()
    candidates = [raw.str.slice(0, 10).str.to_date("%Y-%m-%d", strict=False)]
    candidates.extend(raw.str.to_date(fmt, strict=False) for fmt in DATE_FORMATS)
    return pl.coalesce(candidates)


def clamp_finite(value: float) -> float:
    """NaN becomes 0.0, infinities become the largest finite float of the same sign."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    if math.isinf(value):
        return math.copysign(sys.float_info.max, value)
    return value


def finite_sum(values: np.ndarray) -> float:
    """Sum that stays finite for values near the float limit.

    The sum is taken over values scaled by their largest magnitude, then
    scaled back and clamped.
    """
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    scale = float(np.max(np.abs(values)))
    if scale == 0.0 or not math.isfinite(scale):
        return 0.0
    return clamp_finite(float(np.sum(values / scale)) * scale)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3). Non-finite values are clamped first."""
    return int(math.floor(clamp_finite(value) + 0.5))


def build_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create the random source shared by every stage of one analysis run."""
    return np.random.default_rng(seed)


def convert_numpy_types(obj: Any) -> Any:
    """Convert numpy scalars/arrays into JSON-serializable Python types."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        v = float(obj)
        if np.isnan(v) or np.isinf(v):
            return None
        return v
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, dict):
        return {k: convert_numpy_types(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [convert_numpy_types(v) for v in obj]
    return obj


def build_issue_summary(row_level_issues: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Count row-level issues by type and severity, with affected rows and columns."""
    summary: Dict[str, Any] = {
        "total_issues": len(row_level_issues),
        "by_type": {},
        "by_severity": {},
        "affected_rows": len({i.get("row_index") for i in row_level_issues if i.get("row_index") is not None}),
        "affected_columns": sorted({i.get("column") for i in row_level_issues if i.get("column")}),
    }
    for issue in row_level_issues:
        issue_type = issue.get("issue_type", "unknown")
        severity = issue.get("severity", "info")
        summary["by_type"][issue_type] = summary["by_type"].get(issue_type, 0) + 1
        summary["by_severity"][severity] = summary["by_severity"].get(severity, 0) + 1
    return summary
