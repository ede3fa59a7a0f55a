"""Tests for snapshot aggregation: labels, distribution, trend and scatter."""
import numpy as np
import pytest

from agents.aggregator import (
    DEFAULT_TOP_SEGMENT,
    MONTH_ABBREVIATIONS,
    cluster_scatter,
    metric_labels,
    real_monthly_trend,
    segment_distribution,
    synthetic_monthly_trend,
    top_segment,
)
from agents.feature_extractor import FeatureSet
from agents.field_classifier import FieldRoles
from agents.segmentation import SegmentAssignment, SegmentationStrategy
from agents.table import Table


class TestMetricLabels:
    """Tests for metric_labels."""

    @pytest.mark.parametrize("identifier,expected", [
        ("customer_id", "Total Customers"),
        ("user_email", "Total Users"),
        ("contact", "Total Contacts"),
        ("email", "Total Records"),
        (None, "Total Records"),
    ])
    def test_customers_label(self, identifier, expected):
        assert metric_labels(FieldRoles(identifier_field=identifier)).customers == expected

    @pytest.mark.parametrize("amount,revenue,avg_order", [
        ("monthly_revenue", "Total Revenue", "Avg Revenue"),
        ("sales_total", "Total Sales", "Avg Sale Value"),
        ("order_value", "Total Value", "Avg Order Value"),
        ("order_amount", "Total Amount", "Avg Order Value"),
        ("total_spent", "Total Value", "Avg Value"),
    ])
    def test_amount_labels(self, amount, revenue, avg_order):
        labels = metric_labels(FieldRoles(amount_fields=(amount,)))
        assert (labels.revenue, labels.avg_order) == (revenue, avg_order)

    def test_no_amount_field(self):
        labels = metric_labels(FieldRoles())
        assert (labels.revenue, labels.avg_order) == ("Total Value", "Avg Value")


class TestSegmentDistribution:
    """Tests for segment_distribution and top_segment."""

    def test_counts_and_order(self):
        shares = segment_distribution(("B", "A", "A", "B", "C"))
        assert [(s.name, s.value, s.percentage) for s in shares] == [
            ("A", 2, 40),
            ("B", 2, 40),
            ("C", 1, 20),
        ]
        assert top_segment(shares) == "A"

    def test_percentages_round_half_up(self):
        shares = segment_distribution(("X",) * 5 + ("Y",) * 3)
        assert [s.percentage for s in shares] == [63, 38]

    def test_empty(self):
        assert segment_distribution(()) == ()
        assert top_segment(()) == DEFAULT_TOP_SEGMENT


class TestMonthlyTrend:
    """Tests for the real and synthetic monthly trends."""

    def test_real_trend_groups_by_month(self):
        table = Table.from_records([
            {"signup_date": "2024-01-05"},
            {"signup_date": "2024-01-20"},
            {"signup_date": "2024-03-01T10:00:00"},
            {"signup_date": "garbage"},
        ])
        trend = real_monthly_trend(table, "signup_date", np.array([10.0, 20.4, 5.5, 100.0]))
        assert [(p.month, p.customers, p.revenue) for p in trend] == [
            ("Jan 24", 2, 30),
            ("Mar 24", 1, 6),
        ]

    def test_real_trend_keeps_latest_months(self):
        records = [{"created": f"{2023 + (m // 12)}-{m % 12 + 1:02d}-15"} for m in range(14)]
        table = Table.from_records(records)
        trend = real_monthly_trend(table, "created", np.ones(14), months=12)
        assert len(trend) == 12
        assert trend[0].month == "Mar 23"
        assert trend[-1].month == "Feb 24"

    def test_real_trend_without_dates_is_empty(self):
        table = Table.from_records([{"signup_date": "n/a"}])
        assert real_monthly_trend(table, "signup_date", np.zeros(1)) == ()

    def test_synthetic_trend_counts(self, rng):
        trend = synthetic_monthly_trend(25, 1200.0, rng)
        assert [p.month for p in trend] == list(MONTH_ABBREVIATIONS)
        assert [p.customers for p in trend] == [3] * 8 + [1] + [0] * 3
        assert sum(p.customers for p in trend) == 25

    def test_synthetic_revenue_jitter(self, rng):
        trend = synthetic_monthly_trend(120, 1200.0, rng)
        for point in trend:
            assert 80 <= point.revenue <= 120

    def test_synthetic_without_placeholders(self, rng):
        trend = synthetic_monthly_trend(12, 1200.0, rng, synthetic_placeholders=False)
        assert [p.revenue for p in trend] == [100] * 12
        assert [p.customers for p in trend] == [1] * 12


class TestClusterScatter:
    """Tests for cluster_scatter."""

    @staticmethod
    def _assignment(n):
        return SegmentAssignment(
            strategy=SegmentationStrategy.KMEANS,
            cluster_ids=np.zeros(n, dtype=int),
            names_by_id={0: "Majority Segment"},
        )

    def test_two_features_are_real_coordinates(self, rng):
        features = FeatureSet(
            fields=("a", "b", "c"),
            matrix=np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]),
            amounts=np.zeros(2),
        )
        points = cluster_scatter(features, self._assignment(2), rng)
        assert [(p.x, p.y) for p in points] == [(1.0, 2.0), (4.0, 5.0)]
        assert points[0].segment == "Majority Segment"

    def test_one_feature_uses_placeholder_y(self, rng):
        features = FeatureSet(fields=("a",), matrix=np.array([[7.0], [8.0]]), amounts=np.zeros(2))
        points = cluster_scatter(features, self._assignment(2), rng)
        assert [p.x for p in points] == [7.0, 8.0]
        assert all(0.0 <= p.y < 100.0 for p in points)

    def test_no_features_without_placeholders(self, rng):
        features = FeatureSet(fields=(), matrix=np.zeros((3, 0)), amounts=np.zeros(3))
        points = cluster_scatter(features, self._assignment(3), rng, synthetic_placeholders=False)
        assert [(p.x, p.y) for p in points] == [(0.0, 0.0)] * 3
