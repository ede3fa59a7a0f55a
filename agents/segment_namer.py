"""
Segment Namer

Turns k-means cluster ids into readable segment names from cluster statistics:
the mean of the primary value feature relative to its global mean, and the
share of records in the cluster.
"""

from typing import Dict, Optional

import numpy as np


def value_based_name(cluster_mean: float, global_mean: float, size_ratio: float) -> str:
    """Name a cluster from its mean primary value relative to the global mean."""
    if cluster_mean > global_mean * 1.5:
        return "High Value" if size_ratio > 0.15 else "Premium"
    if cluster_mean > global_mean * 0.8:
        return "Core Customers" if size_ratio > 0.25 else "Regular"
    if cluster_mean > global_mean * 0.3:
        return "Potential Growth"
    return "Entry Level" if size_ratio > 0.2 else "At Risk"


def size_based_name(size_ratio: float) -> str:
    """Name a cluster from its share of records alone."""
    if size_ratio > 0.3:
        return "Majority Segment"
    if size_ratio > 0.2:
        return "Significant Group"
    if size_ratio > 0.1:
        return "Niche Segment"
    return "Emerging Group"


def name_clusters(
    labels: np.ndarray,
    raw_matrix: np.ndarray,
    primary_value_index: Optional[int] = None,
) -> Dict[int, str]:
    """
    Name every non-empty cluster.

    Args:
        labels: Cluster id per record
        raw_matrix: Unnormalized feature matrix, one row per record
        primary_value_index: Column of raw_matrix holding the primary amount,
            None (or a negative value) when no numeric amount column exists

    Returns:
        Mapping cluster id -> name. Empty clusters get no entry and
        different clusters may share a name.
    """
    labels = np.asarray(labels)
    total = int(labels.shape[0])
    if total == 0:
        return {}

    has_value = (
        primary_value_index is not None
        and 0 <= primary_value_index < raw_matrix.shape[1]
    )
    values = np.zeros(total)
    if has_value:
        # Names compare ratios of means; scaling keeps the means finite.
        values = np.asarray(raw_matrix[:, primary_value_index], dtype=float)
        scale = float(np.abs(values).max())
        if scale > 0 and np.isfinite(scale):
            values = values / scale
    global_mean = float(values.mean())

    names: Dict[int, str] = {}
    for cluster_id in np.unique(labels):
        members = labels == cluster_id
        size_ratio = float(members.sum()) / total
        if has_value:
            cluster_mean = float(values[members].mean())
            names[int(cluster_id)] = value_based_name(cluster_mean, global_mean, size_ratio)
        else:
            names[int(cluster_id)] = size_based_name(size_ratio)
    return names
