# Agents package
from . import customer_insights_agent

__all__ = [
    'customer_insights_agent',
]
