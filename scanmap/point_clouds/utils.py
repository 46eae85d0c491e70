"""Basic point-cloud operations shared by registration and mapping.

Key functions:
    - calculate_point_cloud_center: Centroid of a cloud
    - find_nearest_neighbour_naive: Exhaustive nearest-neighbour scan
    - transform_point_cloud: Rigidly transform a copy of a cloud
"""

from typing import Optional, Union

import numpy as np

from ..geometry import RigidTransform, SimilarityTransform


def validate_point_cloud(points: np.ndarray, name: str = "points") -> np.ndarray:
    """
    Check that ``points`` is a (M, N) array and return it as an ndarray.

    Raises:
        ValueError: If the array is not two-dimensional.
    """
    points = np.asarray(points)
    if points.ndim != 2:
        raise ValueError(f"{name} must have shape (M, N), got {points.shape}")
    return points


def calculate_point_cloud_center(points: np.ndarray) -> np.ndarray:
    """
    Calculate the mean (centroid) of a point cloud.

    Args:
        points: Point cloud, shape (M, N).

    Returns:
        Centroid, shape (N,). A zero vector if the cloud is empty.

    Examples:
        >>> calculate_point_cloud_center(np.array([[1.0, 2.0, 3.0],
        ...                                        [4.0, 5.0, 6.0],
        ...                                        [7.0, 8.0, 9.0]]))
        array([4., 5., 6.])
    """
    points = validate_point_cloud(points)
    if points.shape[0] == 0:
        return np.zeros(points.shape[1], dtype=points.dtype)
    return points.mean(axis=0)


def find_nearest_neighbour_naive(
    point: np.ndarray,
    all_points: np.ndarray,
) -> Optional[np.ndarray]:
    """
    Find the closest point of ``all_points`` to ``point`` by exhaustive scan.

    Args:
        point: Query point, shape (N,).
        all_points: Candidate cloud, shape (M, N).

    Returns:
        Copy of the closest candidate, or None if ``all_points`` is empty.
        On exact distance ties the first candidate wins.
    """
    all_points = validate_point_cloud(all_points, "all_points")
    if all_points.shape[0] == 0:
        return None

    diff = all_points - np.asarray(point)
    squared_distances = np.einsum("ij,ij->i", diff, diff)
    return all_points[int(np.argmin(squared_distances))].copy()


def transform_point_cloud(
    points: np.ndarray,
    transform: Union[RigidTransform, SimilarityTransform],
) -> np.ndarray:
    """
    Transform a point cloud, returning a transformed copy.

    Args:
        points: Point cloud, shape (M, N).
        transform: Rigid or similarity transform of matching dimension.

    Returns:
        Transformed cloud, shape (M, N). The input is not modified.
    """
    points = validate_point_cloud(points)
    if points.shape[0] == 0:
        return points.copy()
    return transform.transform_point(points)
