"""
Custom exceptions for tool execution.

All tool-level exceptions inherit from InsightsException.
Each exception includes an error_code for frontend handling.
"""

from typing import Optional, Dict, Any


class InsightsException(Exception):
    """
    Base exception for errors raised while running a tool.

    Attributes:
        detail: Human-readable error message
        error_code: Machine-readable error code for frontend handling
        status_code: HTTP status code to return
        context: Additional context for debugging
    """

    def __init__(
        self,
        detail: str,
        error_code: str = "INSIGHTS_ERROR",
        status_code: int = 400,
        context: Optional[Dict[str, Any]] = None
    ):
        self.detail = detail
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "detail": self.detail,
            "error_code": self.error_code,
            "context": self.context
        }


class ToolNotFoundError(InsightsException):
    """
    Raised when the requested tool has no definition.

    HTTP Status: 404 Not Found
    """

    def __init__(self, tool_id: str, available_tools: Optional[list] = None):
        context = {"tool_id": tool_id}
        if available_tools:
            context["available_tools"] = available_tools

        super().__init__(
            detail=f"Tool '{tool_id}' not found",
            error_code="TOOL_NOT_FOUND",
            status_code=404,
            context=context
        )
        self.tool_id = tool_id


class FileValidationError(InsightsException):
    """
    Raised when uploaded files do not satisfy the tool's file requirements.

    HTTP Status: 400 Bad Request
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__(
            detail=f"File validation failed: {errors}",
            error_code="FILE_VALIDATION_FAILED",
            status_code=400,
            context={"errors": errors}
        )
        self.errors = errors


class InvalidParametersError(InsightsException):
    """
    Raised when parameters_json is not a JSON object.

    HTTP Status: 400 Bad Request
    """

    def __init__(self, reason: str):
        super().__init__(
            detail=f"Invalid parameters JSON: {reason}",
            error_code="INVALID_PARAMETERS",
            status_code=400,
            context={"reason": reason}
        )


class UnknownAgentError(InsightsException):
    """
    Raised when an agent id is not offered by the tool.

    HTTP Status: 400 Bad Request
    """

    def __init__(self, agent_ids: list, tool_id: str):
        super().__init__(
            detail=f"Agent(s) not available for tool '{tool_id}': {', '.join(agent_ids)}",
            error_code="UNKNOWN_AGENT",
            status_code=400,
            context={"agents": agent_ids, "tool_id": tool_id}
        )
