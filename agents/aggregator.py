"""
Insights Aggregator

Combines field roles, features and segment assignments into the insights
snapshot handed to the presentation layer: headline metrics, segment
distribution, monthly trend, cluster scatter and enriched customer records.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np
import polars as pl

from .agent_utils import convert_numpy_types, date_expr, finite_sum, round_half_up
from .feature_extractor import FeatureSet
from .field_classifier import FieldRoles
from .segmentation import SegmentAssignment
from .table import Table

logger = logging.getLogger(__name__)


MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
TREND_JITTER = (0.8, 1.2)
SCATTER_PLACEHOLDER_RANGE = 100.0
DEFAULT_TOP_SEGMENT = "Champions"


# =============================================================================
# SNAPSHOT TYPES
# =============================================================================

@dataclass(frozen=True)
class SegmentShare:
    name: str
    value: int
    percentage: int


@dataclass(frozen=True)
class TrendPoint:
    month: str
    customers: int
    revenue: int


@dataclass(frozen=True)
class ScatterPoint:
    x: float
    y: float
    cluster: int
    segment: str


@dataclass(frozen=True)
class MetricLabels:
    customers: str
    revenue: str
    avg_order: str


@dataclass(frozen=True)
class CustomerRecord:
    """A source record enriched with its derived fields."""

    id: int
    cluster: int
    segment: str
    monetary: float
    features: Dict[str, float]
    fields: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.fields,
            "id": self.id,
            "cluster": self.cluster,
            "segment": self.segment,
            "monetary": self.monetary,
            "features": dict(self.features),
        }


@dataclass(frozen=True)
class InsightsSnapshot:
    """Aggregate analytics for one table."""

    total_customers: int
    total_revenue: float
    avg_order_value: float
    segment_data: Tuple[SegmentShare, ...]
    monthly_data: Tuple[TrendPoint, ...]
    cluster_visualization_data: Tuple[ScatterPoint, ...]
    customer_segments: Tuple[CustomerRecord, ...]
    field_roles: FieldRoles
    fields: Tuple[str, ...]
    labels: MetricLabels
    top_segment: str
    strategy: str
    trend_is_synthetic: bool = False
    scatter_is_placeholder: bool = False
    invalid_amounts: Tuple[Tuple[int, str], ...] = ()
    segmentation_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def numeric_fields(self) -> Tuple[str, ...]:
        return self.field_roles.numeric_fields

    def segment_percentage(self, name: str) -> int:
        for share in self.segment_data:
            if share.name == name:
                return share.percentage
        return 0

    def to_dict(self, customer_limit: Optional[int] = None) -> Dict[str, Any]:
        customers = self.customer_segments
        if customer_limit is not None:
            customers = customers[:customer_limit]
        return convert_numpy_types({
            "total_customers": self.total_customers,
            "total_revenue": self.total_revenue,
            "avg_order_value": self.avg_order_value,
            "segment_data": [vars(s) for s in self.segment_data],
            "monthly_data": [vars(p) for p in self.monthly_data],
            "trend_is_synthetic": self.trend_is_synthetic,
            "cluster_visualization_data": [vars(p) for p in self.cluster_visualization_data],
            "scatter_is_placeholder": self.scatter_is_placeholder,
            "customer_segments": [c.to_dict() for c in customers],
            "numeric_fields": list(self.numeric_fields),
            "fields": list(self.fields),
            "field_roles": self.field_roles.to_dict(),
            "labels": vars(self.labels),
            "top_segment": self.top_segment,
            "strategy": self.strategy,
            "segmentation": self.segmentation_details,
        })


@dataclass(frozen=True)
class NoDataResult:
    """Returned instead of a snapshot when the table has no records."""

    message: str = "No data available. Upload a CSV file with a header row and at least one data row."

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "no_data", "message": self.message}


NO_DATA = NoDataResult()


# =============================================================================
# LABELS
# =============================================================================

def metric_labels(roles: FieldRoles) -> MetricLabels:
    """Card titles derived from the identifier and primary amount column names."""
    identifier = (roles.identifier_field or "").lower()
    if "customer" in identifier:
        customers = "Total Customers"
    elif "user" in identifier:
        customers = "Total Users"
    elif "contact" in identifier:
        customers = "Total Contacts"
    else:
        customers = "Total Records"

    amount = (roles.primary_amount_field or "").lower()
    if not amount:
        return MetricLabels(customers=customers, revenue="Total Value", avg_order="Avg Value")

    if "revenue" in amount:
        revenue = "Total Revenue"
    elif "sales" in amount:
        revenue = "Total Sales"
    elif "value" in amount:
        revenue = "Total Value"
    elif "amount" in amount:
        revenue = "Total Amount"
    else:
        revenue = "Total Value"

    if "revenue" in amount:
        avg_order = "Avg Revenue"
    elif "sales" in amount:
        avg_order = "Avg Sale Value"
    elif "order" in amount:
        avg_order = "Avg Order Value"
    else:
        avg_order = "Avg Value"

    return MetricLabels(customers=customers, revenue=revenue, avg_order=avg_order)


# =============================================================================
# SEGMENT DISTRIBUTION
# =============================================================================

def segment_distribution(segment_names: Tuple[str, ...]) -> Tuple[SegmentShare, ...]:
    """Count records per segment name, largest first, ties by name."""
    total = len(segment_names)
    if total == 0:
        return ()

    counts = (
        pl.DataFrame({"segment": list(segment_names)}, schema={"segment": pl.Utf8})
        .group_by("segment")
        .agg(pl.len().alias("value"))
        .sort(["value", "segment"], descending=[True, False])
    )
    return tuple(
        SegmentShare(
            name=row["segment"],
            value=int(row["value"]),
            percentage=round_half_up(row["value"] / total * 100),
        )
        for row in counts.iter_rows(named=True)
    )


def top_segment(distribution: Tuple[SegmentShare, ...]) -> str:
    return distribution[0].name if distribution else DEFAULT_TOP_SEGMENT


# =============================================================================
# MONTHLY TREND
# =============================================================================

def real_monthly_trend(
    table: Table,
    date_field: str,
    amounts: np.ndarray,
    months: int = 12,
) -> Tuple[TrendPoint, ...]:
    """Group records by calendar month of date_field, keeping the last `months` buckets.

    Records whose date does not parse are left out.
    """
    frame = table.to_frame().select(date_expr(table.frame_column(date_field)).alias("date"))
    frame = frame.with_columns(pl.Series("amount", amounts, dtype=pl.Float64))

    buckets = (
        frame.filter(pl.col("date").is_not_null())
        .with_columns(pl.col("date").dt.truncate("1mo").alias("month_start"))
        .group_by("month_start")
        .agg([
            pl.len().alias("customers"),
            pl.sum("amount").alias("revenue"),
        ])
        .sort("month_start")
        .tail(months)
        .with_columns(pl.col("month_start").dt.strftime("%b %y").alias("month"))
    )
    return tuple(
        TrendPoint(
            month=row["month"],
            customers=int(row["customers"]),
            revenue=round_half_up(float(row["revenue"])),
        )
        for row in buckets.iter_rows(named=True)
    )


def synthetic_monthly_trend(
    record_count: int,
    total_revenue: float,
    rng: np.random.Generator,
    months: int = 12,
    synthetic_placeholders: bool = True,
) -> Tuple[TrendPoint, ...]:
    """Spread records evenly over `months` buckets with jittered revenue."""
    per_month = math.ceil(record_count / months) if months > 0 else 0
    low, high = TREND_JITTER

    points = []
    for i in range(months):
        customers = max(0, min(per_month, record_count - i * per_month))
        jitter = low + rng.random() * (high - low) if synthetic_placeholders else 1.0
        points.append(TrendPoint(
            month=MONTH_ABBREVIATIONS[i % 12],
            customers=customers,
            revenue=round_half_up(total_revenue / months * jitter),
        ))
    return tuple(points)


# =============================================================================
# CLUSTER SCATTER
# =============================================================================

def cluster_scatter(
    features: FeatureSet,
    assignment: SegmentAssignment,
    rng: np.random.Generator,
    synthetic_placeholders: bool = True,
) -> Tuple[ScatterPoint, ...]:
    """(first numeric feature, second numeric feature) per record.

    An axis without a numeric feature gets placeholders in [0, 100).
    """
    n = features.record_count
    m = len(features.fields)

    def _axis(position: int) -> np.ndarray:
        if m > position:
            return features.matrix[:, position]
        if synthetic_placeholders:
            return rng.random(n) * SCATTER_PLACEHOLDER_RANGE
        return np.zeros(n)

    xs = _axis(0)
    ys = _axis(1)
    names = assignment.segment_names
    return tuple(
        ScatterPoint(
            x=float(xs[i]),
            y=float(ys[i]),
            cluster=int(assignment.cluster_ids[i]),
            segment=names[i],
        )
        for i in range(n)
    )


# =============================================================================
# SNAPSHOT
# =============================================================================

def build_customer_records(
    table: Table,
    features: FeatureSet,
    assignment: SegmentAssignment,
) -> Tuple[CustomerRecord, ...]:
    names = assignment.segment_names
    return tuple(
        CustomerRecord(
            id=i + 1,
            cluster=int(assignment.cluster_ids[i]),
            segment=names[i],
            monetary=float(features.amounts[i]),
            features=features.feature_map(i),
            fields=table.record(i),
        )
        for i in range(len(table))
    )


def build_insights(
    table: Table,
    roles: FieldRoles,
    features: FeatureSet,
    assignment: SegmentAssignment,
    rng: np.random.Generator,
    *,
    trend_months: int = 12,
    synthetic_placeholders: bool = True,
) -> InsightsSnapshot:
    """Aggregate one analysed table into its insights snapshot."""
    total = len(table)
    total_revenue = finite_sum(features.amounts) if total else 0.0
    avg_order_value = total_revenue / total if total else 0.0

    distribution = segment_distribution(assignment.segment_names)

    trend: Tuple[TrendPoint, ...] = ()
    if roles.primary_date_field is not None:
        trend = real_monthly_trend(table, roles.primary_date_field, features.amounts, trend_months)
    trend_is_synthetic = len(trend) == 0
    if trend_is_synthetic:
        logger.info("No usable date values, using a synthetic %d-month trend", trend_months)
        trend = synthetic_monthly_trend(total, total_revenue, rng, trend_months, synthetic_placeholders)

    scatter = cluster_scatter(features, assignment, rng, synthetic_placeholders)

    details = {k: v for k, v in assignment.details.items() if k != "scores"}
    return InsightsSnapshot(
        total_customers=total,
        total_revenue=total_revenue,
        avg_order_value=avg_order_value,
        segment_data=distribution,
        monthly_data=trend,
        cluster_visualization_data=scatter,
        customer_segments=build_customer_records(table, features, assignment),
        field_roles=roles,
        fields=table.columns,
        labels=metric_labels(roles),
        top_segment=top_segment(distribution),
        strategy=assignment.strategy.value,
        trend_is_synthetic=trend_is_synthetic,
        scatter_is_placeholder=len(features.fields) < 2,
        invalid_amounts=features.invalid_amounts,
        segmentation_details=details,
    )
