"""
Field Classifier

Infers the semantic role of each column of a schema-less table from its name
(identifier, monetary amount, date) and from a sample of its values (numeric).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .agent_utils import numeric_expr
from .table import Table

logger = logging.getLogger(__name__)


IDENTIFIER_KEYWORDS = ("email",)
AMOUNT_KEYWORDS = ("amount", "revenue", "value", "total")
DATE_KEYWORDS = ("date", "time", "created")

DEFAULT_NUMERIC_SAMPLE_SIZE = 100


@dataclass(frozen=True)
class FieldRoles:
    """Column roles inferred for one table. Every name is a column of that table."""

    identifier_field: Optional[str] = None
    amount_fields: Tuple[str, ...] = field(default_factory=tuple)
    date_fields: Tuple[str, ...] = field(default_factory=tuple)
    numeric_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def primary_amount_field(self) -> Optional[str]:
        return self.amount_fields[0] if self.amount_fields else None

    @property
    def primary_date_field(self) -> Optional[str]:
        return self.date_fields[0] if self.date_fields else None

    @property
    def primary_value_index(self) -> int:
        """Position in numeric_fields of the first numeric amount column, -1 if none."""
        for idx, name in enumerate(self.numeric_fields):
            if name in self.amount_fields:
                return idx
        return -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier_field": self.identifier_field,
            "amount_fields": list(self.amount_fields),
            "date_fields": list(self.date_fields),
            "numeric_fields": list(self.numeric_fields),
        }


def _matches(column: str, keywords: Tuple[str, ...]) -> bool:
    lowered = column.lower()
    return any(keyword in lowered for keyword in keywords)


def find_identifier_field(columns: Tuple[str, ...]) -> Optional[str]:
    for column in columns:
        if _matches(column, IDENTIFIER_KEYWORDS):
            return column
    return columns[0] if columns else None


def find_amount_fields(columns: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(c for c in columns if _matches(c, AMOUNT_KEYWORDS))


def find_date_fields(columns: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(c for c in columns if _matches(c, DATE_KEYWORDS))


def find_numeric_fields(table: Table, sample_size: int = DEFAULT_NUMERIC_SAMPLE_SIZE) -> Tuple[str, ...]:
    """Columns where at least one of the first `sample_size` values parses as a finite number."""
    if table.is_empty or not table.columns:
        return ()

    sample = table.head(sample_size).to_frame()
    counts = sample.select([
        numeric_expr(table.frame_column(c)).count().alias(table.frame_column(c))
        for c in table.columns
    ]).row(0, named=True)

    return tuple(c for c in table.columns if counts[table.frame_column(c)] > 0)


def classify_fields(table: Table, sample_size: int = DEFAULT_NUMERIC_SAMPLE_SIZE) -> FieldRoles:
    """Classify the columns of a table. Deterministic for a given table."""
    columns = table.columns
    roles = FieldRoles(
        identifier_field=find_identifier_field(columns),
        amount_fields=find_amount_fields(columns),
        date_fields=find_date_fields(columns),
        numeric_fields=find_numeric_fields(table, sample_size),
    )
    logger.debug(
        "Classified %d columns: identifier=%s amount=%s date=%s numeric=%s",
        len(columns), roles.identifier_field, roles.amount_fields,
        roles.date_fields, roles.numeric_fields,
    )
    return roles
