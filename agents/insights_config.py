"""
Customer insights configuration and constants.
"""
import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


SEGMENTATION_STRATEGIES = ("kmeans", "rfm")


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


@dataclass
class InsightsConfig:
    """Insights pipeline configuration."""

    # Clustering
    max_clusters: int = field(default=5)
    max_iterations: int = field(default=100)
    default_strategy: str = field(default="kmeans")

    # Field inference
    numeric_sample_size: int = field(default=100)

    # Aggregation
    trend_months: int = field(default=12)
    customer_records_limit: int = field(default=1000)

    # Randomness
    random_seed: Optional[int] = field(default=None)
    synthetic_placeholders: bool = field(default=True)

    def __post_init__(self):
        """Load configuration from environment."""
        self.max_clusters = int(os.getenv("INSIGHTS_MAX_CLUSTERS", str(self.max_clusters)))
        self.max_iterations = int(os.getenv("INSIGHTS_MAX_ITERATIONS", str(self.max_iterations)))
        self.numeric_sample_size = int(os.getenv("INSIGHTS_NUMERIC_SAMPLE_SIZE", str(self.numeric_sample_size)))
        self.trend_months = int(os.getenv("INSIGHTS_TREND_MONTHS", str(self.trend_months)))
        self.customer_records_limit = int(
            os.getenv("INSIGHTS_CUSTOMER_RECORDS_LIMIT", str(self.customer_records_limit))
        )
        self.synthetic_placeholders = _env_bool("INSIGHTS_SYNTHETIC_PLACEHOLDERS", self.synthetic_placeholders)

        seed = os.getenv("INSIGHTS_RANDOM_SEED")
        if seed is not None and seed.strip():
            self.random_seed = int(seed)

        strategy = os.getenv("INSIGHTS_SEGMENTATION_STRATEGY", self.default_strategy).strip().lower()
        self.default_strategy = strategy if strategy in SEGMENTATION_STRATEGIES else "kmeans"

    def __repr__(self) -> str:
        return (
            f"InsightsConfig(max_clusters={self.max_clusters}, "
            f"max_iterations={self.max_iterations}, "
            f"strategy={self.default_strategy}, "
            f"seed={self.random_seed}, "
            f"synthetic_placeholders={self.synthetic_placeholders})"
        )


# Global config instance
insights_config = InsightsConfig()
