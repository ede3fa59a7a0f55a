"""
API Routes and Endpoints

Tool discovery, CSV analysis and demo sample data.
"""

import time
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, File, UploadFile, Form, Query

from agents.agent_utils import build_rng
from agents.sample_data import SAMPLE_SIZE, generate_sample_records
from tool_registry import get_tool_definitions
from tool_transformers import customer_insights_transformer
from tool_transformers.exceptions import InsightsException

# Create router for API routes
router = APIRouter()


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Customer Insights Backend",
        "version": "1.0.0",
        "tools": list(get_tool_definitions().keys()),
        "documentation": "/docs"
    }


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/tools")
async def list_tools():
    """List all available tools."""
    tools = []
    for tool_id, tool_def in get_tool_definitions().items():
        tools.append({
            "id": tool_id,
            "name": tool_def["tool"]["name"],
            "description": tool_def["tool"]["description"],
            "icon": tool_def["tool"].get("icon", "🔧"),
            "category": tool_def["tool"].get("category", "analyze"),
            "isAvailable": tool_def["tool"].get("isAvailable", True),
            "available_agents": tool_def["tool"]["available_agents"],
            "required_files": list(tool_def["tool"].get("files", {}).keys())
        })
    return {"tools": tools}


@router.get("/tools/{tool_id}")
async def get_tool(tool_id: str):
    """Get tool definition with file requirements and agent specifications."""
    tool_definitions = get_tool_definitions()
    if tool_id not in tool_definitions:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_id}' not found")

    tool_def = tool_definitions[tool_id]
    return {
        "tool": {
            **tool_def["tool"],
            "category": tool_def["tool"].get("category", "analyze"),
            "isAvailable": tool_def["tool"].get("isAvailable", True)
        },
        "agents": tool_def.get("agents", {}),
        "file_requirements": tool_def["tool"].get("files", {})
    }


@router.post("/analyze")
async def analyze(
    tool_id: str = Form(...),
    agents: Optional[str] = Form(None),
    parameters_json: Optional[str] = Form(None),
    primary: Optional[UploadFile] = File(None),
):
    """
    Analyze an uploaded customer CSV.

    Args:
        tool_id: Tool identifier (e.g., "customer-insights")
        agents: Comma-separated agent IDs (optional, uses tool defaults)
        parameters_json: JSON string with agent-specific parameters,
            e.g. '{"customer-insights-agent": {"strategy": "rfm", "random_seed": 7}}'
        primary: Customer CSV file

    Returns:
        Unified analysis response with analysis_id, status and report
    """
    analysis_id = str(uuid.uuid4())
    start_time = time.time()

    try:
        return await customer_insights_transformer.run_customer_insights_analysis(
            tool_id,
            agents,
            parameters_json,
            primary,
            analysis_id,
        )
    except (HTTPException, InsightsException):
        raise
    except Exception as e:
        return {
            "analysis_id": analysis_id,
            "status": "error",
            "error": str(e),
            "execution_time_ms": int((time.time() - start_time) * 1000)
        }


@router.get("/sample-data")
async def sample_data(
    seed: Optional[int] = Query(None),
    size: int = Query(SAMPLE_SIZE, ge=1, le=10000),
):
    """Generate demo customer rows (same seed, same rows)."""
    records = generate_sample_records(build_rng(seed), size)
    return {"count": len(records), "seed": seed, "records": records}
