"""Voxel-grid downsampling of N-dimensional point clouds."""

import numpy as np

from .utils import validate_point_cloud


def downsample_point_cloud_voxel(points: np.ndarray, voxel_size: float) -> np.ndarray:
    """Voxel grid downsampling using quantization and centroid computation.

    Args:
        points: Input points, shape (M, N).
        voxel_size: Voxel edge length, in the same unit as the points.

    Returns:
        Downsampled points, shape (K, N) where K <= M, same dtype as input.

    Raises:
        ValueError: If voxel_size is not positive.

    Notes:
        - Points are quantized to voxel indices with floor(p / voxel_size)
        - Points in the same voxel are replaced by their centroid
        - Output order is not guaranteed to follow input order

    Example:
        >>> pts = np.array([[0.0, 0.0, 0.0], [0.05, 0.08, 0.01], [1.0, 2.0, 3.0]])
        >>> len(downsample_point_cloud_voxel(pts, 0.5))
        2
    """
    if not voxel_size > 0:
        raise ValueError(f"voxel_size must be positive, got {voxel_size}")

    points = validate_point_cloud(points)
    if points.shape[0] == 0:
        return points.copy()

    # Quantize points to voxel indices
    voxel_indices = np.floor(points / voxel_size).astype(np.int64)

    # Group points by voxel using dictionary
    voxel_dict = {}
    for i, voxel_idx in enumerate(voxel_indices):
        voxel_dict.setdefault(tuple(voxel_idx), []).append(points[i])

    downsampled = [np.mean(voxel_points, axis=0) for voxel_points in voxel_dict.values()]

    dtype = points.dtype if np.issubdtype(points.dtype, np.floating) else np.float64
    return np.array(downsampled, dtype=dtype)
