"""
Shared helpers for tool transformers: file requirements, upload validation
and reading uploads into memory.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import UploadFile

from tool_registry import get_tool_config
from .exceptions import InvalidParametersError


def get_required_files(tool_id: str, agents: List[str]) -> Dict[str, Dict[str, Any]]:
    """
    Get required files for a tool and agents.

    Returns mapping of file_key -> file_definition
    """
    tool_def = get_tool_config(tool_id)
    if not tool_def:
        return {}

    tool_files = tool_def.get("tool", {}).get("files", {})
    required_files = dict(tool_files)

    # Agent-level requirements
    agents_def = tool_def.get("agents", {})
    for agent_id in agents:
        for file_key in agents_def.get(agent_id, {}).get("required_files", []):
            if file_key in tool_files:
                required_files[file_key] = tool_files[file_key]

    return required_files


def validate_files(
    uploaded_files: Dict[str, Optional[UploadFile]],
    required_files: Dict[str, Dict[str, Any]]
) -> Dict[str, str]:
    """
    Validate uploaded files against tool requirements.

    Returns:
        Dictionary of errors (if any)
    """
    errors = {}

    for file_key, file_def in required_files.items():
        is_required = file_def.get("required", False)
        file_obj = uploaded_files.get(file_key)

        if is_required and file_obj is None:
            errors[file_key] = f"Required file '{file_key}' not provided"
            continue

        if file_obj is not None:
            allowed_formats = file_def.get("formats", [])
            if allowed_formats and file_obj.filename:
                file_ext = file_obj.filename.split(".")[-1].lower() if "." in file_obj.filename else ""
                if file_ext not in allowed_formats:
                    errors[file_key] = f"File format '.{file_ext}' not allowed. Allowed: {', '.join(allowed_formats)}"

    return errors


async def read_uploaded_files(
    uploaded_files: Dict[str, Optional[UploadFile]]
) -> Dict[str, tuple]:
    """
    Read uploaded files into memory.

    Args:
        uploaded_files: Dictionary of file_key -> UploadFile

    Returns:
        Dictionary of file_key -> (bytes, filename)
    """
    files_map = {}

    for file_key, file_obj in uploaded_files.items():
        if file_obj:
            file_contents = await file_obj.read()
            files_map[file_key] = (file_contents, file_obj.filename)

    return files_map


def parse_parameters_json(parameters_json: Optional[str]) -> Dict[str, Any]:
    """Parse the per-agent parameters form field ({agent_id: {param: value}})."""
    if not parameters_json or not parameters_json.strip():
        return {}
    try:
        parameters = json.loads(parameters_json)
    except json.JSONDecodeError as e:
        raise InvalidParametersError(str(e))
    if not isinstance(parameters, dict):
        raise InvalidParametersError("expected a JSON object")
    return parameters
