"""
Tabular input model.

A Table is an ordered sequence of records sharing one column set. The schema
(column name -> position) is resolved once when the table is built and every
stage reads values by position, so feature vectors stay aligned with the
classified fields.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import polars as pl


Record = Mapping[str, str]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Table:
    """Immutable, schema-ordered table of string fields."""

    columns: Tuple[str, ...] = ()
    rows: Tuple[Tuple[str, ...], ...] = ()

    @classmethod
    def from_records(cls, records: Optional[Sequence[Mapping[str, Any]]]) -> "Table":
        """Build a table from row mappings; the first record defines the schema.

        Keys missing from later records read as empty strings, extra keys are ignored.
        """
        if not records:
            return cls()

        keys = list(records[0].keys())
        columns = tuple(_as_text(k) for k in keys)
        rows = tuple(
            tuple(_as_text(record.get(key)) for key in keys)
            for record in records
        )
        return cls(columns=columns, rows=rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, str]]:
        for i in range(len(self.rows)):
            yield self.record(i)

    @property
    def is_empty(self) -> bool:
        return len(self.rows) == 0

    def index_of(self, column: str) -> int:
        return self.columns.index(column)

    def frame_column(self, column: str) -> str:
        """Positional name of a column inside the frame returned by to_frame()."""
        return f"c{self.index_of(column)}"

    def record(self, index: int) -> Dict[str, str]:
        return dict(zip(self.columns, self.rows[index]))

    def column_values(self, column: str) -> List[str]:
        idx = self.index_of(column)
        return [row[idx] for row in self.rows]

    def head(self, n: int) -> "Table":
        return Table(columns=self.columns, rows=self.rows[:max(0, n)])

    def to_frame(self) -> pl.DataFrame:
        """All-Utf8 polars frame with positional column names (c0, c1, ...)."""
        data = {
            f"c{j}": [row[j] for row in self.rows]
            for j in range(len(self.columns))
        }
        schema = {name: pl.Utf8 for name in data}
        return pl.DataFrame(data, schema=schema)


def decode_csv_bytes(file_contents: bytes) -> str:
    """Decode uploaded bytes; BOM is dropped and invalid sequences are replaced."""
    return file_contents.decode("utf-8-sig", errors="replace")


def parse_csv_text(text: str) -> Table:
    """
    Parse CSV text with a plain comma split.

    The header row gives the column names; each later non-blank line becomes
    one record. Double quotes are stripped from every cell and missing trailing
    cells read as "". Quoted cells containing commas are not supported.
    Fewer than two non-blank lines yield an empty table.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        return Table()

    headers = [header.strip().replace('"', "") for header in lines[0].split(",")]

    records = []
    for line in lines[1:]:
        values = [value.strip().replace('"', "") for value in line.split(",")]
        row: Dict[str, str] = {}
        # Repeated header names keep their first position and the last value.
        for index, header in enumerate(headers):
            row[header] = values[index] if index < len(values) else ""
        records.append(row)

    return Table.from_records(records)
