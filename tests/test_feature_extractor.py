"""Tests for feature extraction and the RFM input columns."""
import numpy as np

from agents.feature_extractor import (
    MISSING_FREQUENCY,
    MISSING_RECENCY_DAYS,
    extract_features,
    frequency_counts,
    recency_days,
)
from agents.field_classifier import FieldRoles, classify_fields
from agents.table import Table


class TestExtractFeatures:
    """Tests for extract_features."""

    def test_unparseable_amount_becomes_zero(self, scenario_table):
        roles = classify_fields(scenario_table)
        features = extract_features(scenario_table, roles)

        assert features.fields == ("total_spent",)
        np.testing.assert_allclose(features.amounts, [100.0, 0.0, 250.5])
        np.testing.assert_allclose(features.matrix[:, 0], [100.0, 0.0, 250.5])
        assert features.invalid_amounts == ((1, "abc"),)

    def test_blank_amount_is_not_reported_invalid(self):
        table = Table.from_records([{"total": ""}, {"total": "5"}])
        features = extract_features(table, classify_fields(table))
        np.testing.assert_allclose(features.amounts, [0.0, 5.0])
        assert features.invalid_amounts == ()

    def test_shape_follows_numeric_fields(self, sample_table):
        roles = classify_fields(sample_table)
        features = extract_features(sample_table, roles)
        assert features.matrix.shape == (250, 3)
        assert features.record_count == 250
        assert set(features.feature_map(0)) == {"age", "total_spent", "order_count"}

    def test_no_amount_field_gives_zero_amounts(self):
        table = Table.from_records([{"name": "a", "score": "1"}, {"name": "b", "score": "2"}])
        features = extract_features(table, classify_fields(table))
        np.testing.assert_array_equal(features.amounts, [0.0, 0.0])

    def test_amount_outside_numeric_fields_still_parsed(self):
        """The primary amount is read even when it was not classified numeric."""
        table = Table.from_records([{"total": "12"}, {"total": "x"}])
        roles = FieldRoles(amount_fields=("total",))
        features = extract_features(table, roles)
        assert features.matrix.shape == (2, 0)
        np.testing.assert_allclose(features.amounts, [12.0, 0.0])

    def test_empty_table(self):
        features = extract_features(Table(), FieldRoles())
        assert features.matrix.shape == (0, 0)
        assert features.amounts.shape == (0,)


class TestRecencyAndFrequency:
    """Tests for recency_days and frequency_counts."""

    def test_recency_from_dates(self):
        table = Table.from_records([
            {"last_purchase_date": "2024-01-01"},
            {"last_purchase_date": "2024-01-31"},
            {"last_purchase_date": "not a date"},
        ])
        roles = classify_fields(table)
        days = recency_days(table, "last_purchase_date", roles)
        np.testing.assert_allclose(days, [30.0, 0.0, MISSING_RECENCY_DAYS])

    def test_recency_accepts_other_date_formats(self):
        table = Table.from_records([
            {"seen_date": "10.01.2024"},
            {"seen_date": "2024/01/20"},
        ])
        days = recency_days(table, "seen_date", classify_fields(table))
        np.testing.assert_allclose(days, [10.0, 0.0])

    def test_recency_from_day_counts(self):
        table = Table.from_records([{"days_since": "12"}, {"days_since": "?"}])
        days = recency_days(table, "days_since", classify_fields(table))
        np.testing.assert_allclose(days, [12.0, MISSING_RECENCY_DAYS])

    def test_frequency_counts(self):
        table = Table.from_records([{"orders": "5"}, {"orders": "many"}])
        np.testing.assert_allclose(frequency_counts(table, "orders"), [5.0, MISSING_FREQUENCY])
