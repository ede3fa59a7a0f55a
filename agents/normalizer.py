"""
Z-score normalization of a feature matrix.
"""

import numpy as np


def zscore_normalize(matrix: np.ndarray) -> np.ndarray:
    """
    Standardize each column to mean 0 and unit population standard deviation.

    Columns with zero standard deviation are only centred (divisor 1), so a
    constant column comes out all zeros. An empty matrix (no rows or no
    columns) is returned as a float copy of the input.
    """
    data = np.array(matrix, dtype=float, copy=True)
    if data.ndim != 2 or data.shape[0] == 0 or data.shape[1] == 0:
        return data

    # z-scores do not depend on scale; dividing by the largest magnitude keeps
    # mean and std finite for values near the float limit.
    scale = np.abs(data).max(axis=0)
    scale[(scale == 0) | ~np.isfinite(scale)] = 1.0
    data = data / scale

    means = data.mean(axis=0)
    stds = data.std(axis=0)  # ddof=0: divide by n
    # Float rounding in the mean can leave a tiny non-zero std on constant columns.
    constant = data.max(axis=0) == data.min(axis=0)
    stds[constant | (stds == 0) | ~np.isfinite(stds)] = 1.0

    normalized = (data - means) / stds
    normalized[:, constant] = 0.0
    return np.nan_to_num(normalized, nan=0.0, posinf=0.0, neginf=0.0)
