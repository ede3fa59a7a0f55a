"""
Segmentation Engine

Assigns every record to exactly one segment using one of two strategies:

- rfm: fixed-threshold Recency/Frequency/Monetary scoring. Recency and
  frequency come from real columns when the caller supplies them, otherwise
  from synthetic uniform draws (demo placeholders).
- kmeans: Lloyd's k-means with k-means++ initialisation over the z-score
  normalized numeric features, named from centroid statistics.

All random draws use the generator passed in by the caller.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .feature_extractor import FeatureSet
from .normalizer import zscore_normalize
from .segment_namer import name_clusters

logger = logging.getLogger(__name__)


class SegmentationStrategy(str, Enum):
    """Segmentation strategies supported by the engine."""
    KMEANS = "kmeans"
    RFM = "rfm"


RFM_SEGMENTS = (
    "Champions",
    "Loyal Customers",
    "Potential Loyalists",
    "At Risk",
    "Need Attention",
    "Lost Customers",
)

# Synthetic draw ranges, inclusive
SYNTHETIC_RECENCY_DAYS = (0, 364)
SYNTHETIC_FREQUENCY = (1, 20)


@dataclass(frozen=True)
class SegmentAssignment:
    """One segment id and name per record, aligned with the table."""

    strategy: SegmentationStrategy
    cluster_ids: np.ndarray
    names_by_id: Dict[int, str]
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def segment_names(self) -> Tuple[str, ...]:
        return tuple(self.name_for(int(c)) for c in self.cluster_ids)

    def name_for(self, cluster_id: int) -> str:
        return self.names_by_id.get(cluster_id, f"Segment {cluster_id + 1}")


# =============================================================================
# RULE-BASED RFM
# =============================================================================

def recency_score(days: float) -> int:
    """Days since last activity; fewer days score higher."""
    if days < 30:
        return 5
    if days < 90:
        return 4
    if days < 180:
        return 3
    if days < 365:
        return 2
    return 1


def frequency_score(count: float) -> int:
    if count > 15:
        return 5
    if count > 10:
        return 4
    if count > 5:
        return 3
    if count > 2:
        return 2
    return 1


def monetary_score(amount: float) -> int:
    if amount > 1000:
        return 5
    if amount > 500:
        return 4
    if amount > 200:
        return 3
    if amount > 50:
        return 2
    return 1


def rfm_segment_id(average_score: float) -> int:
    """Index into RFM_SEGMENTS for an averaged RFM score."""
    if average_score >= 4.5:
        return 0
    if average_score >= 4.0:
        return 1
    if average_score >= 3.5:
        return 2
    if average_score >= 3.0:
        return 3
    if average_score >= 2.0:
        return 4
    return 5


def rfm_segmentation(
    amounts: np.ndarray,
    rng: np.random.Generator,
    recency: Optional[np.ndarray] = None,
    frequency: Optional[np.ndarray] = None,
    synthetic_placeholders: bool = True,
) -> SegmentAssignment:
    """
    Score each record on recency, frequency and monetary value and map the
    average score to a fixed segment.

    Missing recency/frequency inputs are drawn uniformly from the generator
    when synthetic_placeholders is on; otherwise that component is left out
    of the average.
    """
    n = int(len(amounts))
    recency_source = "column" if recency is not None else "synthetic"
    frequency_source = "column" if frequency is not None else "synthetic"

    if recency is None and synthetic_placeholders:
        low, high = SYNTHETIC_RECENCY_DAYS
        recency = rng.integers(low, high + 1, size=n).astype(float)
    if frequency is None and synthetic_placeholders:
        low, high = SYNTHETIC_FREQUENCY
        frequency = rng.integers(low, high + 1, size=n).astype(float)

    if recency is None:
        recency_source = "excluded"
    if frequency is None:
        frequency_source = "excluded"

    cluster_ids = np.zeros(n, dtype=int)
    scores = []
    for i in range(n):
        components = [monetary_score(float(amounts[i]))]
        r = recency_score(float(recency[i])) if recency is not None else None
        f = frequency_score(float(frequency[i])) if frequency is not None else None
        if r is not None:
            components.append(r)
        if f is not None:
            components.append(f)
        average = sum(components) / len(components)
        cluster_ids[i] = rfm_segment_id(average)
        scores.append({"r_score": r, "f_score": f, "m_score": components[0], "rfm_score": average})

    return SegmentAssignment(
        strategy=SegmentationStrategy.RFM,
        cluster_ids=cluster_ids,
        names_by_id={i: name for i, name in enumerate(RFM_SEGMENTS)},
        details={
            "recency_source": recency_source,
            "frequency_source": frequency_source,
            "scores": scores,
        },
    )


# =============================================================================
# K-MEANS CLUSTERING
# =============================================================================

@dataclass(frozen=True)
class KMeansResult:
    labels: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


def _squared_distances(matrix: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """(records, k) matrix of squared Euclidean distances."""
    diff = matrix[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return (diff ** 2).sum(axis=2)


def assign_clusters(matrix: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Nearest centroid per record; ties go to the lowest cluster id."""
    return np.argmin(_squared_distances(matrix, centroids), axis=1)


def kmeans_plus_plus_init(matrix: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Select k initial centroids using the k-means++ strategy."""
    n = matrix.shape[0]
    centroids = [matrix[int(rng.integers(n))]]

    for _ in range(1, k):
        with np.errstate(over="ignore", invalid="ignore"):
            nearest = _squared_distances(matrix, np.array(centroids)).min(axis=1)
            total = float(nearest.sum())
        if total <= 0.0 or not np.isfinite(total):
            # Every point sits on an existing centroid, or distances overflowed
            idx = int(rng.integers(n))
        else:
            idx = int(rng.choice(n, p=nearest / total))
        centroids.append(matrix[idx])

    return np.array(centroids, dtype=float)


def _update_centroids(matrix: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Mean of each cluster's members; an empty cluster keeps its previous centroid."""
    updated = centroids.copy()
    for cluster_id in range(centroids.shape[0]):
        members = matrix[labels == cluster_id]
        if members.shape[0] > 0:
            updated[cluster_id] = members.mean(axis=0)
    return updated


def kmeans(
    matrix: np.ndarray,
    k: int,
    rng: np.random.Generator,
    max_iterations: int = 100,
) -> KMeansResult:
    """
    Lloyd's k-means.

    Stops when an iteration leaves every assignment unchanged or after
    max_iterations. A matrix with no rows or no columns yields one trivial
    cluster 0 for every record.
    """
    n = matrix.shape[0] if matrix.ndim == 2 else 0
    m = matrix.shape[1] if matrix.ndim == 2 else 0
    if n == 0 or m == 0 or k <= 1:
        centroids = matrix.mean(axis=0, keepdims=True) if n > 0 and m > 0 else np.zeros((1, m))
        return KMeansResult(
            labels=np.zeros(n, dtype=int),
            centroids=centroids,
            iterations=0,
            converged=True,
        )

    k = min(k, n)
    centroids = kmeans_plus_plus_init(matrix, k, rng)
    labels = assign_clusters(matrix, centroids)

    iterations = 0
    converged = False
    for iterations in range(1, max_iterations + 1):
        centroids = _update_centroids(matrix, labels, centroids)
        new_labels = assign_clusters(matrix, centroids)
        if np.array_equal(new_labels, labels):
            converged = True
            break
        labels = new_labels

    logger.debug("k-means k=%d finished after %d iteration(s), converged=%s", k, iterations, converged)
    return KMeansResult(labels=labels, centroids=centroids, iterations=iterations, converged=converged)


def kmeans_segmentation(
    features: FeatureSet,
    rng: np.random.Generator,
    primary_value_index: Optional[int] = None,
    max_clusters: int = 5,
    max_iterations: int = 100,
) -> SegmentAssignment:
    """Cluster the normalized features and name clusters from the raw features."""
    n = features.record_count
    k = min(max_clusters, n)
    normalized = zscore_normalize(features.matrix)
    result = kmeans(normalized, k, rng, max_iterations=max_iterations)

    names = name_clusters(result.labels, features.matrix, primary_value_index)
    return SegmentAssignment(
        strategy=SegmentationStrategy.KMEANS,
        cluster_ids=result.labels,
        names_by_id=names,
        details={
            "k": k,
            "iterations": result.iterations,
            "converged": result.converged,
            "normalized_features": list(features.fields),
        },
    )


# =============================================================================
# ENTRY POINT
# =============================================================================

def segment(
    features: FeatureSet,
    strategy: SegmentationStrategy,
    rng: np.random.Generator,
    *,
    primary_value_index: Optional[int] = None,
    recency: Optional[np.ndarray] = None,
    frequency: Optional[np.ndarray] = None,
    max_clusters: int = 5,
    max_iterations: int = 100,
    synthetic_placeholders: bool = True,
) -> SegmentAssignment:
    """Segment every record with the selected strategy."""
    if strategy == SegmentationStrategy.RFM:
        return rfm_segmentation(
            features.amounts,
            rng,
            recency=recency,
            frequency=frequency,
            synthetic_placeholders=synthetic_placeholders,
        )
    return kmeans_segmentation(
        features,
        rng,
        primary_value_index=primary_value_index,
        max_clusters=max_clusters,
        max_iterations=max_iterations,
    )
