"""
Customer Insights Agent

Infers field roles of an uploaded customer table, segments every record
(k-means clustering over auto-detected numeric fields, or rule-based RFM
scoring) and aggregates chart-ready summaries.

Input: CSV file (primary)
Output: Insights snapshot (metrics, segment distribution, monthly trend,
        cluster scatter, enriched customer records) plus alerts/issues/
        recommendations following the agent response standard.
"""

import copy
import logging
import time
from typing import Any, Dict, List, Optional, Union

import numpy as np

from .agent_utils import build_issue_summary, build_rng, parse_parameters, resolve_column
from .aggregator import NO_DATA, InsightsSnapshot, NoDataResult, build_insights
from .feature_extractor import extract_features, frequency_counts, recency_days
from .field_classifier import classify_fields
from .insights_config import SEGMENTATION_STRATEGIES, InsightsConfig, insights_config
from .segmentation import SegmentationStrategy, segment
from .table import Table, decode_csv_bytes, parse_csv_text

logger = logging.getLogger(__name__)


AGENT_ID = "customer-insights-agent"
AGENT_NAME = "Customer Insights Agent"

PARAMETER_SPECS = {
    "strategy": (str, None),
    "random_seed": (int, None),
    "max_clusters": (int, None),
    "max_iterations": (int, None),
    "synthetic_placeholders": (bool, None),
    "recency_column": (str, None),
    "frequency_column": (str, None),
}


def analyze_table(
    table: Optional[Table],
    strategy: Union[SegmentationStrategy, str, None] = None,
    *,
    config: Optional[InsightsConfig] = None,
    rng: Optional[np.random.Generator] = None,
    recency_column: Optional[str] = None,
    frequency_column: Optional[str] = None,
) -> Union[InsightsSnapshot, NoDataResult]:
    """
    Run the whole pipeline on one table.

    Classify fields, extract features, segment, aggregate. Each call works on
    its own copies; an empty or missing table returns NO_DATA.

    Args:
        table: Parsed input table
        strategy: "kmeans" or "rfm" (default from config)
        config: Pipeline settings (default: the global insights_config)
        rng: Random source for every random draw (default: seeded from config)
        recency_column: Real recency input for RFM (days or a date column)
        frequency_column: Real frequency input for RFM
    """
    config = config or insights_config
    if table is None or table.is_empty:
        return NO_DATA

    rng = rng if rng is not None else build_rng(config.random_seed)
    strategy = SegmentationStrategy(strategy or config.default_strategy)

    roles = classify_fields(table, config.numeric_sample_size)
    features = extract_features(table, roles)

    recency = None
    frequency = None
    if strategy == SegmentationStrategy.RFM:
        if recency_column is not None:
            recency = recency_days(table, recency_column, roles)
        if frequency_column is not None:
            frequency = frequency_counts(table, frequency_column)

    assignment = segment(
        features,
        strategy,
        rng,
        primary_value_index=roles.primary_value_index,
        recency=recency,
        frequency=frequency,
        max_clusters=config.max_clusters,
        max_iterations=config.max_iterations,
        synthetic_placeholders=config.synthetic_placeholders,
    )

    return build_insights(
        table,
        roles,
        features,
        assignment,
        rng,
        trend_months=config.trend_months,
        synthetic_placeholders=config.synthetic_placeholders,
    )


def _error(message: str, start_time: float) -> Dict[str, Any]:
    return {
        "status": "error",
        "agent_id": AGENT_ID,
        "agent_name": AGENT_NAME,
        "error": message,
        "execution_time_ms": int((time.time() - start_time) * 1000),
    }


def _run_config(params: Dict[str, Any]) -> InsightsConfig:
    """Copy of the global config with request overrides applied."""
    config = copy.copy(insights_config)
    if params["random_seed"] is not None:
        config.random_seed = params["random_seed"]
    if params["max_clusters"] is not None:
        config.max_clusters = max(1, params["max_clusters"])
    if params["max_iterations"] is not None:
        config.max_iterations = max(1, params["max_iterations"])
    if params["synthetic_placeholders"] is not None:
        config.synthetic_placeholders = params["synthetic_placeholders"]
    return config


def execute_customer_insights_agent(
    file_contents: bytes,
    filename: str,
    parameters: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Analyze an uploaded customer CSV.

    Args:
        file_contents: File bytes (read as binary)
        filename: Original filename (used to detect format)
        parameters: Agent parameters from the tool definition

    Returns:
        Standardized agent output dictionary with the insights snapshot under "data"
    """
    start_time = time.time()
    params = parse_parameters(parameters or {}, PARAMETER_SPECS)
    config = _run_config(params)

    strategy = (params["strategy"] or config.default_strategy).strip().lower()

    try:
        # ----------------------------
        # Input validation
        # ----------------------------
        if not filename or not filename.lower().endswith(".csv"):
            return _error(f"Unsupported file format: {filename}. Only CSV is supported.", start_time)

        if strategy not in SEGMENTATION_STRATEGIES:
            return _error(
                f"Unknown segmentation strategy '{strategy}'. Use one of: {', '.join(SEGMENTATION_STRATEGIES)}",
                start_time,
            )

        table = parse_csv_text(decode_csv_bytes(file_contents))

        if table.is_empty:
            return {
                "status": "no_data",
                "agent_id": AGENT_ID,
                "agent_name": AGENT_NAME,
                "execution_time_ms": int((time.time() - start_time) * 1000),
                "data": NO_DATA.to_dict(),
                "alerts": [],
                "issues": [],
                "row_level_issues": [],
                "recommendations": [],
                "executive_summary": [],
                "ai_analysis_text": "",
            }

        # Resolve RFM input columns (case-insensitive)
        recency_col = resolve_column(params["recency_column"], list(table.columns))
        frequency_col = resolve_column(params["frequency_column"], list(table.columns))
        missing_cols = [
            name for name, requested, resolved in [
                ("recency_column", params["recency_column"], recency_col),
                ("frequency_column", params["frequency_column"], frequency_col),
            ]
            if requested and resolved is None
        ]
        if missing_cols:
            return _error(f"Selected column(s) not found in dataset: {', '.join(missing_cols)}", start_time)

        # ----------------------------
        # Pipeline
        # ----------------------------
        rng = build_rng(config.random_seed)
        snapshot = analyze_table(
            table,
            strategy,
            config=config,
            rng=rng,
            recency_column=recency_col,
            frequency_column=frequency_col,
        )
        if isinstance(snapshot, NoDataResult):
            return _error(snapshot.message, start_time)

        invalid_amounts = _invalid_amount_rows(snapshot)
        logger.info(
            "✓ %s: %d records, %d segment(s), strategy=%s",
            AGENT_ID, snapshot.total_customers, len(snapshot.segment_data), strategy,
        )

        return {
            "status": "success",
            "agent_id": AGENT_ID,
            "agent_name": AGENT_NAME,
            "execution_time_ms": int((time.time() - start_time) * 1000),
            "summary_metrics": {
                "total_records": snapshot.total_customers,
                "numeric_fields": len(snapshot.numeric_fields),
                "segments_produced": len(snapshot.segment_data),
                "invalid_amount_values": len(invalid_amounts),
            },
            "data": snapshot.to_dict(customer_limit=config.customer_records_limit),
            "alerts": _build_alerts(snapshot, invalid_amounts),
            "issues": _build_issues(table, snapshot, invalid_amounts),
            "row_level_issues": invalid_amounts[:1000],
            "issue_summary": build_issue_summary(invalid_amounts[:1000]),
            "recommendations": _build_recommendations(snapshot),
            "executive_summary": _build_executive_summary(snapshot),
            "ai_analysis_text": build_insights_text(snapshot),
        }

    except Exception as e:
        logger.exception("%s failed", AGENT_ID)
        return _error(str(e), start_time)


# =============================================================================
# REPORT SECTIONS
# =============================================================================

def _invalid_amount_rows(snapshot: InsightsSnapshot) -> List[Dict[str, Any]]:
    amount_field = snapshot.field_roles.primary_amount_field
    return [
        {
            "row_index": row_index,
            "column": amount_field,
            "issue_type": "invalid_numeric",
            "severity": "warning",
            "message": "Amount could not be parsed as numeric and was counted as 0",
            "value": raw,
        }
        for row_index, raw in snapshot.invalid_amounts
    ]


def _build_alerts(snapshot: InsightsSnapshot, invalid_amounts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    alerts: List[Dict[str, Any]] = []
    roles = snapshot.field_roles

    if not roles.amount_fields:
        alerts.append({
            "alert_id": "alert_insights_no_amount_field",
            "severity": "medium",
            "category": "field_detection",
            "message": "No amount-like column (amount, revenue, value, total) was found. Monetary metrics are 0.",
            "affected_fields_count": 0,
            "recommendation": "Rename the monetary column so its name contains 'amount', 'revenue', 'value' or 'total'.",
        })

    if snapshot.trend_is_synthetic:
        alerts.append({
            "alert_id": "alert_insights_synthetic_trend",
            "severity": "low",
            "category": "field_detection",
            "message": "No parseable date column was found. The monthly trend is an even synthetic distribution.",
            "affected_fields_count": len(roles.date_fields),
            "recommendation": "Include a date column (e.g. signup_date) in YYYY-MM-DD format for a real trend.",
        })

    if snapshot.scatter_is_placeholder:
        alerts.append({
            "alert_id": "alert_insights_placeholder_scatter",
            "severity": "low",
            "category": "visualization",
            "message": f"Only {len(roles.numeric_fields)} numeric field(s) detected. The cluster scatter uses placeholder coordinates.",
            "affected_fields_count": len(roles.numeric_fields),
            "recommendation": "Add at least two numeric columns for a meaningful cluster visualization.",
        })

    total = snapshot.total_customers
    invalid_rate = len(invalid_amounts) / total * 100.0 if total else 0.0
    if invalid_rate > 10:
        alerts.append({
            "alert_id": "alert_insights_invalid_amounts",
            "severity": "high" if invalid_rate <= 25 else "critical",
            "category": "data_quality",
            "message": f"{invalid_rate:.1f}% of amount values could not be parsed and were counted as 0.",
            "affected_fields_count": 1,
            "recommendation": "Clean the amount column (remove currency symbols and thousands separators).",
        })

    return alerts


def _build_issues(
    table: Table,
    snapshot: InsightsSnapshot,
    invalid_amounts: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    issues: List[Dict[str, Any]] = []

    if invalid_amounts:
        column = invalid_amounts[0]["column"]
        issues.append({
            "issue_id": "issue_insights_invalid_amounts",
            "agent_id": AGENT_ID,
            "field_name": column,
            "issue_type": "invalid_numeric",
            "severity": "medium",
            "message": f"{len(invalid_amounts)} value(s) in '{column}' are not numeric.",
        })

    non_numeric = [c for c in table.columns if c not in snapshot.numeric_fields]
    if non_numeric:
        issues.append({
            "issue_id": "issue_insights_non_numeric_fields",
            "agent_id": AGENT_ID,
            "field_name": "dataset",
            "issue_type": "excluded_from_clustering",
            "severity": "low",
            "message": f"{len(non_numeric)} column(s) excluded from clustering: {', '.join(non_numeric[:5])}"
                       + ("..." if len(non_numeric) > 5 else ""),
        })

    return issues


def _build_recommendations(snapshot: InsightsSnapshot) -> List[Dict[str, Any]]:
    recommendations = [{
        "recommendation_id": "rec_insights_activation",
        "agent_id": AGENT_ID,
        "field_name": "segments",
        "priority": "medium",
        "recommendation": f"Focus retention and upsell campaigns on the '{snapshot.top_segment}' segment, "
                          "the largest group in this dataset.",
        "timeline": "1-2 weeks",
    }]

    if snapshot.total_customers < 50:
        recommendations.append({
            "recommendation_id": "rec_insights_more_data",
            "agent_id": AGENT_ID,
            "field_name": "dataset",
            "priority": "low",
            "recommendation": f"Only {snapshot.total_customers} records were analyzed. Segments become more stable with more data.",
            "timeline": "ongoing",
        })

    return recommendations


def _build_executive_summary(snapshot: InsightsSnapshot) -> List[Dict[str, Any]]:
    labels = snapshot.labels
    return [
        {
            "summary_id": "exec_insights_records",
            "title": labels.customers,
            "value": f"{snapshot.total_customers:,}",
            "status": "good" if snapshot.total_customers >= 50 else "warning",
            "description": f"Analyzed {snapshot.total_customers} records across {len(snapshot.fields)} columns.",
        },
        {
            "summary_id": "exec_insights_revenue",
            "title": labels.revenue,
            "value": f"${snapshot.total_revenue:,.0f}",
            "status": "info",
            "description": f"Sum of '{snapshot.field_roles.primary_amount_field}'."
            if snapshot.field_roles.primary_amount_field else "No amount column detected.",
        },
        {
            "summary_id": "exec_insights_average",
            "title": labels.avg_order,
            "value": f"${snapshot.avg_order_value:,.2f}",
            "status": "info",
            "description": "Average monetary value per record.",
        },
        {
            "summary_id": "exec_insights_top_segment",
            "title": "Top Segment",
            "value": snapshot.top_segment,
            "status": "good",
            "description": f"{snapshot.segment_percentage(snapshot.top_segment)}% of records.",
        },
    ]


def build_insights_text(snapshot: InsightsSnapshot) -> str:
    """Plain-text actionable insights for a snapshot."""
    numeric = list(snapshot.numeric_fields)
    feature_names = ", ".join(numeric[:3]) if numeric else "no numeric features"
    more = f" and {len(numeric) - 3} more features" if len(numeric) > 3 else ""
    method = "K-means clustering" if snapshot.strategy == SegmentationStrategy.KMEANS.value else "RFM scoring"

    return "\n".join([
        "CUSTOMER INSIGHTS RESULTS:",
        f"- Analyzed {len(snapshot.fields)} columns with {len(numeric)} numeric features.",
        f"- Your largest segment is \"{snapshot.top_segment}\" with "
        f"{snapshot.segment_percentage(snapshot.top_segment)}% of records.",
        f"- {method} identified {len(snapshot.segment_data)} distinct groups based on {feature_names}{more}.",
        f"- {snapshot.labels.revenue}: {snapshot.total_revenue:.2f} | {snapshot.labels.avg_order}: {snapshot.avg_order_value:.2f}",
    ])
