"""
Tool registry for cached tool definitions.

Loads tool definitions from the tools directory once and reuses them across the app.
"""

import json
import logging
import os
from typing import Dict, Any

logger = logging.getLogger(__name__)

TOOLS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "tools")

_TOOL_DEFINITIONS_CACHE: Dict[str, Dict[str, Any]] | None = None


def _load_tool_definitions_from_disk(tools_dir: str = TOOLS_DIR) -> Dict[str, Dict[str, Any]]:
    """Load tool definitions from tools directory on disk."""
    tool_definitions: Dict[str, Dict[str, Any]] = {}

    if not os.path.exists(tools_dir):
        logger.warning("⚠ Tools directory not found at %s", tools_dir)
        return tool_definitions

    for filename in sorted(os.listdir(tools_dir)):
        if not filename.endswith("_tool.json"):
            continue
        filepath = os.path.join(tools_dir, filename)
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                tool_def = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("⚠ Could not load tool from %s: %s", filename, e)
            continue
        tool_id = tool_def.get("tool", {}).get("id", filename.replace("_tool.json", ""))
        tool_definitions[tool_id] = tool_def
        logger.info("✓ Loaded tool: %s from %s", tool_id, filename)

    if not tool_definitions:
        logger.warning("⚠ No tools loaded!")

    return tool_definitions


def get_tool_definitions(force_reload: bool = False) -> Dict[str, Dict[str, Any]]:
    """Get cached tool definitions, loading from disk if needed."""
    global _TOOL_DEFINITIONS_CACHE

    if _TOOL_DEFINITIONS_CACHE is None or force_reload:
        _TOOL_DEFINITIONS_CACHE = _load_tool_definitions_from_disk()

    return _TOOL_DEFINITIONS_CACHE


def get_tool_config(tool_id: str) -> Dict[str, Any]:
    """Get a single tool definition by tool_id."""
    return get_tool_definitions().get(tool_id, {})
