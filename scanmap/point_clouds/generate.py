"""Deterministic random point-cloud generation for tests and demos."""

from typing import Optional, Sequence, Tuple

import numpy as np

# Fixed seed so generated clouds are reproducible across runs
DEFAULT_SEED = 3765665954583626552


def generate_point_cloud(
    num_points: int,
    ranges: Sequence[Tuple[float, float]],
    seed: Optional[int] = DEFAULT_SEED,
    dtype=np.float64,
) -> np.ndarray:
    """
    Generate a uniformly distributed random point cloud.

    Args:
        num_points: Number of points to generate.
        ranges: One (low, high) pair per dimension; coordinates are drawn
                uniformly from [low, high].
        seed: RNG seed. The same seed always yields the same cloud.
              None draws fresh entropy.
        dtype: Floating-point precision of the result.

    Returns:
        Point cloud of shape (num_points, len(ranges)).

    Raises:
        ValueError: If num_points is negative or a range has low > high.

    Examples:
        >>> cloud = generate_point_cloud(100, [(-15.0, 15.0), (-15.0, 15.0)])
        >>> cloud.shape
        (100, 2)
    """
    if num_points < 0:
        raise ValueError(f"num_points must be non-negative, got {num_points}")
    bounds = np.asarray(ranges, dtype=np.float64)
    if bounds.ndim != 2 or bounds.shape[1] != 2:
        raise ValueError(f"ranges must be a sequence of (low, high) pairs, got shape {bounds.shape}")
    if np.any(bounds[:, 0] > bounds[:, 1]):
        raise ValueError(f"every range must satisfy low <= high, got {bounds.tolist()}")

    rng = np.random.default_rng(seed)
    low = bounds[:, 0]
    high = bounds[:, 1]
    points = low + rng.random((num_points, bounds.shape[0])) * (high - low)

    return points.astype(dtype)
