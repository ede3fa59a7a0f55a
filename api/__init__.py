"""
Customer Insights API Module

Router for tool discovery, analysis and sample data endpoints.
"""

from .routes import router

__all__ = ["router"]
