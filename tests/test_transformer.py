"""Tests for response consolidation and upload helpers."""
import pytest

from tool_registry import get_tool_config, get_tool_definitions
from tool_transformers.customer_insights_transformer import transform_customer_insights_response
from tool_transformers.exceptions import InvalidParametersError, ToolNotFoundError
from tool_transformers.transformers_utils import get_required_files, parse_parameters_json


def _agent_output(status, **extra):
    return {"status": status, **extra}


class TestTransformResponse:
    """Tests for transform_customer_insights_response."""

    @pytest.mark.parametrize("statuses,expected", [
        (["success"], "success"),
        (["no_data"], "no_data"),
        (["success", "error"], "partial"),
        (["error"], "error"),
        (["error", "no_data"], "error"),
    ])
    def test_overall_status(self, statuses, expected):
        results = {f"agent-{i}": _agent_output(s) for i, s in enumerate(statuses)}
        response = transform_customer_insights_response(results, 12, "analysis-1")
        assert response["status"] == expected
        assert response["analysis_id"] == "analysis-1"
        assert response["execution_time_ms"] == 12

    def test_issue_summary_counts_rows_and_columns(self):
        issues = [
            {"row_index": 1, "column": "total", "issue_type": "invalid_numeric", "severity": "warning"},
            {"row_index": 4, "column": "total", "issue_type": "invalid_numeric", "severity": "warning"},
        ]
        results = {"a": _agent_output("success", row_level_issues=issues, alerts=[{"alert_id": "x"}])}
        report = transform_customer_insights_response(results, 0, "id")["report"]

        assert report["alerts"] == [{"alert_id": "x"}]
        assert report["issueSummary"]["total_issues"] == 2
        assert report["issueSummary"]["affected_rows"] == 2
        assert report["issueSummary"]["affected_columns"] == ["total"]
        assert report["issueSummary"]["by_type"] == {"invalid_numeric": 2}

    def test_failed_agents_contribute_no_sections(self):
        results = {"a": _agent_output("error", alerts=[{"alert_id": "ignored"}])}
        report = transform_customer_insights_response(results, 0, "id")["report"]
        assert report["alerts"] == []
        assert report["a"]["status"] == "error"


class TestHelpers:
    """Tests for registry and parameter helpers."""

    def test_registry_loads_tool_files(self):
        assert "customer-insights" in get_tool_definitions(force_reload=True)
        assert get_tool_config("missing") == {}

    def test_required_files(self):
        required = get_required_files("customer-insights", ["customer-insights-agent"])
        assert required["primary"]["required"] is True

    def test_parse_parameters_json(self):
        assert parse_parameters_json(None) == {}
        assert parse_parameters_json("  ") == {}
        assert parse_parameters_json('{"a": {"strategy": "rfm"}}') == {"a": {"strategy": "rfm"}}

    @pytest.mark.parametrize("payload", ["{broken", "[1, 2]"])
    def test_parse_parameters_json_rejects(self, payload):
        with pytest.raises(InvalidParametersError) as exc_info:
            parse_parameters_json(payload)
        assert exc_info.value.to_dict()["error_code"] == "INVALID_PARAMETERS"

    def test_exception_payload(self):
        error = ToolNotFoundError("x", available_tools=["customer-insights"])
        assert error.status_code == 404
        assert error.to_dict() == {
            "detail": "Tool 'x' not found",
            "error_code": "TOOL_NOT_FOUND",
            "context": {"tool_id": "x", "available_tools": ["customer-insights"]},
        }
