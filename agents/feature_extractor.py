"""
Feature Extractor

Turns each record into a numeric feature vector over the classified numeric
fields plus one primary monetary amount. Unparseable values become 0.0.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import polars as pl

from .agent_utils import date_expr, numeric_expr
from .field_classifier import FieldRoles
from .table import Table

logger = logging.getLogger(__name__)


# Worst-bucket values for records whose real recency/frequency is missing
MISSING_RECENCY_DAYS = 365.0
MISSING_FREQUENCY = 0.0


@dataclass(frozen=True)
class FeatureSet:
    """
    Per-record numeric features.

    matrix has shape (records, len(fields)) and column j holds fields[j].
    amounts holds the primary amount of each record, aligned with the table.
    invalid_amounts lists (row_index, raw_value) pairs that failed to parse
    in the primary amount column.
    """

    fields: Tuple[str, ...]
    matrix: np.ndarray
    amounts: np.ndarray
    invalid_amounts: Tuple[Tuple[int, str], ...] = ()

    @property
    def record_count(self) -> int:
        return int(self.matrix.shape[0])

    def feature_map(self, index: int) -> Dict[str, float]:
        return {name: float(self.matrix[index, j]) for j, name in enumerate(self.fields)}


def _parsed_columns(table: Table, columns: List[str]) -> np.ndarray:
    """Parse the given columns to a float matrix, nulls filled with 0.0."""
    n = len(table)
    if not columns or n == 0:
        return np.zeros((n, len(columns)), dtype=float)

    frame = table.to_frame().select([
        numeric_expr(table.frame_column(c)).fill_null(0.0).alias(f"f{j}")
        for j, c in enumerate(columns)
    ])
    return frame.to_numpy().astype(float).reshape(n, len(columns))


def _invalid_values(table: Table, column: str) -> Tuple[Tuple[int, str], ...]:
    source = table.frame_column(column)
    rows = (
        table.to_frame()
        .with_row_index("row_index")
        .filter(numeric_expr(source).is_null() & (pl.col(source).str.strip_chars() != ""))
        .select(["row_index", source])
        .iter_rows()
    )
    return tuple((int(idx), value) for idx, value in rows)


def extract_features(table: Table, roles: FieldRoles) -> FeatureSet:
    """Build the feature matrix and primary amounts for every record of the table."""
    fields = tuple(roles.numeric_fields)
    matrix = _parsed_columns(table, list(fields))

    amount_field = roles.primary_amount_field
    if amount_field is None or table.is_empty:
        amounts = np.zeros(len(table), dtype=float)
        invalid: Tuple[Tuple[int, str], ...] = ()
    else:
        amounts = _parsed_columns(table, [amount_field])[:, 0]
        invalid = _invalid_values(table, amount_field)

    logger.debug("Extracted %d x %d feature matrix", matrix.shape[0], matrix.shape[1])
    return FeatureSet(fields=fields, matrix=matrix, amounts=amounts, invalid_amounts=invalid)


def recency_days(table: Table, column: str, roles: FieldRoles) -> np.ndarray:
    """
    Days since last activity per record.

    A date column that holds parseable dates counts days back from its latest
    date; any other column is read as a number of days. Missing values become
    MISSING_RECENCY_DAYS.
    """
    source = table.frame_column(column)
    frame = table.to_frame()

    if column in roles.date_fields:
        dates = frame.select(date_expr(source).alias("d"))
        latest = dates.get_column("d").max()
        if latest is not None:
            days = dates.select(
                (pl.lit(latest).cast(pl.Date) - pl.col("d")).dt.total_days().cast(pl.Float64).alias("days")
            ).get_column("days")
            return days.fill_null(MISSING_RECENCY_DAYS).to_numpy().astype(float)

    values = frame.select(numeric_expr(source).fill_null(MISSING_RECENCY_DAYS).alias("v"))
    return values.get_column("v").to_numpy().astype(float)


def frequency_counts(table: Table, column: str) -> np.ndarray:
    """Activity count per record; missing values become MISSING_FREQUENCY."""
    source = table.frame_column(column)
    values = table.to_frame().select(numeric_expr(source).fill_null(MISSING_FREQUENCY).alias("v"))
    return values.get_column("v").to_numpy().astype(float)
