"""
Customer Insights Transformer

Runs the customer insights tool: validates the upload, executes the requested
agents and consolidates their alerts, issues, recommendations and executive
summaries into one response.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import UploadFile

from agents import customer_insights_agent
from agents.agent_utils import build_issue_summary
from tool_registry import get_tool_config
from .exceptions import FileValidationError, ToolNotFoundError, UnknownAgentError
from .transformers_utils import (
    get_required_files,
    parse_parameters_json,
    read_uploaded_files,
    validate_files,
)

logger = logging.getLogger(__name__)


TOOL_ID = "customer-insights"

# agent_id -> callable(file_bytes, filename, parameters)
AGENT_EXECUTORS: Dict[str, Callable[[bytes, str, Dict[str, Any]], Dict[str, Any]]] = {
    customer_insights_agent.AGENT_ID: customer_insights_agent.execute_customer_insights_agent,
}


async def run_customer_insights_analysis(
    tool_id: str,
    agents: Optional[str],
    parameters_json: Optional[str],
    primary: Optional[UploadFile],
    analysis_id: str,
) -> Dict[str, Any]:
    """
    Execute the customer insights tool.

    Args:
        tool_id: Tool identifier
        agents: Comma-separated agent IDs (tool defaults when empty)
        parameters_json: JSON object of agent_id -> parameters
        primary: Uploaded customer CSV
        analysis_id: Unique analysis ID

    Returns:
        Final analysis response

    Raises:
        ToolNotFoundError, UnknownAgentError, FileValidationError, InvalidParametersError
    """
    start_time = time.time()

    tool_def = get_tool_config(tool_id)
    if not tool_def:
        raise ToolNotFoundError(tool_id)

    agents_to_run = _agents_to_run(tool_id, tool_def, agents)

    uploaded_files = {k: v for k, v in {"primary": primary}.items() if v is not None}
    validation_errors = validate_files(uploaded_files, get_required_files(tool_id, agents_to_run))
    if validation_errors:
        raise FileValidationError(validation_errors)

    parameters = parse_parameters_json(parameters_json)
    files_map = await read_uploaded_files(uploaded_files)

    agent_results: Dict[str, Dict[str, Any]] = {}
    for agent_id in agents_to_run:
        file_contents, filename = files_map["primary"]
        agent_results[agent_id] = AGENT_EXECUTORS[agent_id](
            file_contents,
            filename,
            parameters.get(agent_id, {}),
        )

    return transform_customer_insights_response(
        agent_results,
        int((time.time() - start_time) * 1000),
        analysis_id,
    )


def _agents_to_run(tool_id: str, tool_def: Dict[str, Any], agents: Optional[str]) -> List[str]:
    available = tool_def["tool"]["available_agents"]
    if not agents or not agents.strip():
        return list(available)

    requested = [a.strip() for a in agents.split(",") if a.strip()]
    unknown = [a for a in requested if a not in available or a not in AGENT_EXECUTORS]
    if unknown:
        raise UnknownAgentError(unknown, tool_id)
    return requested


def transform_customer_insights_response(
    agent_results: Dict[str, Dict[str, Any]],
    execution_time_ms: int,
    analysis_id: str,
) -> Dict[str, Any]:
    """Consolidate agent outputs into unified response."""

    all_alerts: List[Dict[str, Any]] = []
    all_issues: List[Dict[str, Any]] = []
    all_recommendations: List[Dict[str, Any]] = []
    all_row_level_issues: List[Dict[str, Any]] = []
    executive_summary: List[Dict[str, Any]] = []
    analysis_texts: List[str] = []

    for agent_output in agent_results.values():
        if agent_output.get("status") != "success":
            continue
        all_alerts.extend(agent_output.get("alerts", []))
        all_issues.extend(agent_output.get("issues", []))
        all_recommendations.extend(agent_output.get("recommendations", []))
        all_row_level_issues.extend(agent_output.get("row_level_issues", []))
        executive_summary.extend(agent_output.get("executive_summary", []))
        if agent_output.get("ai_analysis_text"):
            analysis_texts.append(agent_output["ai_analysis_text"])

    statuses = {r.get("status") for r in agent_results.values()}
    if statuses == {"success"}:
        status = "success"
    elif statuses == {"no_data"}:
        status = "no_data"
    elif "success" in statuses:
        status = "partial"
    else:
        status = "error"

    issue_summary = build_issue_summary(all_row_level_issues)

    logger.info("Analysis %s finished with status=%s in %d ms", analysis_id, status, execution_time_ms)

    return {
        "analysis_id": analysis_id,
        "tool": TOOL_ID,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "execution_time_ms": execution_time_ms,
        "report": {
            "alerts": all_alerts,
            "issues": all_issues,
            "recommendations": all_recommendations,
            "executiveSummary": executive_summary,
            "analysisSummary": "\n\n".join(analysis_texts),
            "rowLevelIssues": all_row_level_issues[:1000],
            "issueSummary": issue_summary,
            **agent_results,
        },
    }
