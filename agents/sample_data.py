"""
Demo customer dataset generator.
"""

from datetime import date
from typing import Dict, List, Optional

import numpy as np

from .table import Table


SAMPLE_SIZE = 250
SAMPLE_CITIES = (
    "New York", "Los Angeles", "Chicago", "Houston",
    "Phoenix", "Philadelphia", "San Antonio", "San Diego",
)
SAMPLE_SEGMENTS = ("Premium", "Regular", "Budget")


def _random_day(rng: np.random.Generator, year: int) -> str:
    month = int(rng.integers(1, 13))
    day = int(rng.integers(1, 29))
    return date(year, month, day).isoformat()


def generate_sample_records(
    rng: Optional[np.random.Generator] = None,
    size: int = SAMPLE_SIZE,
) -> List[Dict[str, str]]:
    """Generate `size` customer rows with string values, as a CSV upload would carry them."""
    rng = rng if rng is not None else np.random.default_rng()

    records = []
    for i in range(1, size + 1):
        records.append({
            "customer_id": f"CUST{i:04d}",
            "name": f"Customer {i}",
            "email": f"customer{i}@example.com",
            "age": str(int(rng.integers(20, 70))),
            "registration_date": _random_day(rng, 2023),
            "total_spent": str(int(rng.integers(50, 2050))),
            "order_count": str(int(rng.integers(1, 21))),
            "last_purchase_date": _random_day(rng, 2024),
            "city": SAMPLE_CITIES[int(rng.integers(len(SAMPLE_CITIES)))],
            "segment": SAMPLE_SEGMENTS[int(rng.integers(len(SAMPLE_SEGMENTS)))],
        })
    return records


def generate_sample_table(
    rng: Optional[np.random.Generator] = None,
    size: int = SAMPLE_SIZE,
) -> Table:
    return Table.from_records(generate_sample_records(rng, size))


def sample_csv_text(records: List[Dict[str, str]]) -> str:
    """Render sample rows as comma separated text (values never contain commas)."""
    if not records:
        return ""
    headers = list(records[0].keys())
    lines = [",".join(headers)]
    lines.extend(",".join(record[h] for h in headers) for record in records)
    return "\n".join(lines) + "\n"
