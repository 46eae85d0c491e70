"""Closed-form rigid alignment of corresponding point sets (SVD / Procrustes).

Given a "moved" point set A and a "target" point set B with known
correspondences a_i <-> b_i, the rotation R and translation t that minimise
sum_i ||R a_i + t - b_i||^2 are obtained as follows:

    1. Centroids ā, b̄ and cross-covariance M = sum_i (b_i - b̄)(a_i - ā)^T.
    2. SVD: M = U Σ V^T.
    3. R = U V^T, with det correction if needed.
    4. t = b̄ - R ā.

Key functions:
    - cross_covariance: M and both centroids
    - estimate_rotation: Proper rotation from M (det = +1 guaranteed)
    - update_transform: New accumulated transform for one ICP iteration

All functions are pure. A non-converging SVD raises numpy.linalg.LinAlgError,
which is deliberately not caught here.
"""

from typing import Tuple

import numpy as np

from ..geometry import RigidTransform
from ..point_clouds import calculate_point_cloud_center


def cross_covariance(
    moved_points: np.ndarray,
    target_points: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute the cross-covariance matrix and centroids of matched point sets.

    Args:
        moved_points: Source points (already transformed), shape (M, N).
        target_points: Matched target point for each source point, shape (M, N).

    Returns:
        Tuple of (M, mean_moved, mean_target):
            - M: Cross-covariance sum_i (b_i - b̄)(a_i - ā)^T, shape (N, N).
            - mean_moved: Centroid of moved_points, shape (N,).
            - mean_target: Centroid of target_points, shape (N,).

    Raises:
        ValueError: If the point sets have different shapes.

    Examples:
        >>> a = np.array([[6.0, 4.0, 20.0], [100.0, 60.0, 3.0], [5.0, 20.0, 10.0]])
        >>> b = np.array([[40.0, 22.0, 12.0], [10.0, 14.0, 10.0], [7.0, 30.0, 20.0]])
        >>> M, mean_a, mean_b = cross_covariance(a, b)
        >>> mean_a
        array([37., 28., 11.])
        >>> M[:, 0]
        array([-834., -760., -382.])
    """
    moved_points = np.asarray(moved_points)
    target_points = np.asarray(target_points)
    if moved_points.shape != target_points.shape:
        raise ValueError(
            f"Point sets must have same shape. "
            f"Got moved={moved_points.shape}, target={target_points.shape}"
        )

    mean_moved = calculate_point_cloud_center(moved_points)
    mean_target = calculate_point_cloud_center(target_points)

    moved_centered = moved_points - mean_moved
    target_centered = target_points - mean_target

    # (N, M) @ (M, N): sum of outer products b_i a_i^T
    M = target_centered.T @ moved_centered

    return M, mean_moved, mean_target


def estimate_rotation(M: np.ndarray) -> np.ndarray:
    """
    Extract the optimal proper rotation from a cross-covariance matrix.

    Args:
        M: Cross-covariance matrix, shape (N, N), as built by cross_covariance.

    Returns:
        Rotation matrix R, shape (N, N), with det(R) = +1.

    Raises:
        numpy.linalg.LinAlgError: If the SVD does not converge.

    Notes:
        When the point sets are degenerate (collinear, coplanar) or the
        correspondences are poor, U V^T can come out as a reflection
        (det = -1). Negating the last column of U, which pairs with the
        smallest singular value, turns it into the closest proper rotation.
    """
    M = np.asarray(M, dtype=np.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"M must be a square matrix, got shape {M.shape}")

    U, _, Vt = np.linalg.svd(M)  # M = U Σ V^T

    R = U @ Vt

    # Reflection, not rotation
    if np.linalg.det(R) < 0:
        U[:, -1] *= -1
        R = U @ Vt

    return R


def update_transform(
    old_transform: RigidTransform,
    mean_moved: np.ndarray,
    mean_target: np.ndarray,
    M: np.ndarray,
) -> RigidTransform:
    """
    Compose the incremental SVD alignment onto the accumulated transform.

    Args:
        old_transform: Accumulated transform before this iteration.
        mean_moved: Centroid of the currently transformed source points.
        mean_target: Centroid of their matched target points.
        M: Cross-covariance matrix of the matched sets.

    Returns:
        ``RigidTransform(R, mean_target - R mean_moved) @ old_transform``.
    """
    R = estimate_rotation(M)
    translation = np.asarray(mean_target, dtype=np.float64) - R @ np.asarray(
        mean_moved, dtype=np.float64
    )

    increment = RigidTransform.from_parts(translation, R)
    return increment @ old_transform
