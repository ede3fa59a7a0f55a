# Tool transformers package
from . import customer_insights_transformer

__all__ = [
    'customer_insights_transformer',
]
