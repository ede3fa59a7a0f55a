"""Tests for column role inference."""
from agents.field_classifier import (
    FieldRoles,
    classify_fields,
    find_amount_fields,
    find_date_fields,
    find_identifier_field,
    find_numeric_fields,
)
from agents.table import Table


class TestNameHeuristics:
    """Tests for the keyword based role detection."""

    def test_identifier_prefers_email_column(self):
        assert find_identifier_field(("id", "name", "Contact_Email")) == "Contact_Email"

    def test_identifier_falls_back_to_first_column(self):
        assert find_identifier_field(("customer_id", "name")) == "customer_id"

    def test_identifier_of_no_columns(self):
        assert find_identifier_field(()) is None

    def test_amount_fields_keep_column_order(self):
        columns = ("order_total", "name", "Revenue", "lifetime_value", "AMOUNT_usd")
        assert find_amount_fields(columns) == ("order_total", "Revenue", "lifetime_value", "AMOUNT_usd")

    def test_date_fields_match_substrings(self):
        """Substring matching also picks up names like 'timezone'."""
        columns = ("signup_date", "last_login_time", "created_at", "timezone", "city")
        assert find_date_fields(columns) == ("signup_date", "last_login_time", "created_at", "timezone")


class TestNumericFields:
    """Tests for value based numeric detection."""

    def test_one_parseable_value_is_enough(self):
        table = Table.from_records([
            {"age": "", "note": "abc"},
            {"age": " 42 ", "note": "xyz"},
        ])
        assert find_numeric_fields(table) == ("age",)

    def test_non_finite_values_do_not_count(self):
        table = Table.from_records([{"a": "inf", "b": "NaN", "c": "-3.5"}])
        assert find_numeric_fields(table) == ("c",)

    def test_only_the_sample_is_inspected(self):
        records = [{"late": ""} for _ in range(100)] + [{"late": "7"}]
        table = Table.from_records(records)
        assert find_numeric_fields(table, sample_size=100) == ()
        assert find_numeric_fields(table, sample_size=101) == ("late",)

    def test_empty_table(self):
        assert find_numeric_fields(Table()) == ()


class TestClassifyFields:
    """Tests for classify_fields."""

    def test_sample_table_roles(self, sample_table):
        roles = classify_fields(sample_table)
        assert roles.identifier_field == "email"
        assert roles.amount_fields == ("total_spent",)
        assert roles.date_fields == ("registration_date", "last_purchase_date")
        assert roles.numeric_fields == ("age", "total_spent", "order_count")
        assert roles.primary_amount_field == "total_spent"
        assert roles.primary_date_field == "registration_date"
        assert roles.primary_value_index == 1

    def test_deterministic(self, scenario_table):
        assert classify_fields(scenario_table) == classify_fields(scenario_table)

    def test_every_role_names_a_column(self, sample_table):
        roles = classify_fields(sample_table)
        named = {roles.identifier_field, *roles.amount_fields, *roles.date_fields, *roles.numeric_fields}
        assert named <= set(sample_table.columns)

    def test_amount_column_that_is_not_numeric(self):
        table = Table.from_records([{"email": "a@x.com", "total": "n/a", "score": "3"}])
        roles = classify_fields(table)
        assert roles.amount_fields == ("total",)
        assert roles.numeric_fields == ("score",)
        assert roles.primary_value_index == -1

    def test_to_dict(self):
        roles = FieldRoles(identifier_field="email", amount_fields=("total",))
        assert roles.to_dict() == {
            "identifier_field": "email",
            "amount_fields": ["total"],
            "date_fields": [],
            "numeric_fields": [],
        }
