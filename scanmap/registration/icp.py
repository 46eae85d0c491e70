"""ICP (Iterative Closest Point) registration of 2D and 3D point clouds.

ICP aligns a source cloud to a target cloud by alternating between:
    1. Finding, for every transformed source point, its nearest target point.
    2. Re-estimating the rigid transform in closed form (SVD alignment).

Convergence is declared when the mean squared error (MSE) between the
transformed source points and their matches either drops below an absolute
threshold (if configured) or changes by less than the interval threshold
between two consecutive iterations.

Key functions:
    - calculate_mse: Mean squared distance between matched point sets
    - find_correspondences: Nearest target point for every source point
    - icp_iteration: One correspondence + alignment step
    - icp: Full ICP loop with precondition checks

Failures are raised as ICPError subclasses (see .types).
"""

import logging
from typing import Optional

import numpy as np

from ..geometry import RigidTransform
from ..point_clouds import find_nearest_neighbour_naive, validate_point_cloud
from ..spatial import KDTree
from .alignment import cross_covariance, update_transform
from .types import (
    DidNotConverge,
    ICPConfiguration,
    ICPSuccess,
    NoNearestNeighbourFound,
    SourceCloudEmpty,
    TargetCloudEmpty,
)

logger = logging.getLogger(__name__)


def calculate_mse(
    transformed_points: np.ndarray,
    matched_points: np.ndarray,
) -> float:
    """
    Compute the mean squared Euclidean distance between matched points.

    Args:
        transformed_points: Source points after transformation, shape (M, N).
        matched_points: Corresponding target points, shape (M, N).

    Returns:
        mean_i ||a_i - b_i||^2, or 0.0 for empty input.

    Raises:
        ValueError: If point clouds have different shapes.

    Examples:
        >>> a = np.array([[1.0, 2.0, 3.0], [4.0, 4.0, 4.0], [7.0, 7.0, 7.0]])
        >>> b = np.array([[1.0, 1.0, 1.0], [4.0, 5.0, 6.0], [8.0, 8.0, 8.0]])
        >>> calculate_mse(a, b)
        4.333333333333333
    """
    if transformed_points.shape != matched_points.shape:
        raise ValueError(
            f"Point clouds must have same shape. "
            f"Got transformed={transformed_points.shape}, matched={matched_points.shape}"
        )

    if transformed_points.shape[0] == 0:
        return 0.0

    diff = transformed_points - matched_points
    squared_distances = np.sum(diff**2, axis=1)
    return float(np.mean(squared_distances))


def find_correspondences(
    transformed_points: np.ndarray,
    target_points: np.ndarray,
    target_tree: Optional[KDTree] = None,
) -> np.ndarray:
    """
    Find the nearest target point for every transformed source point.

    Args:
        transformed_points: Source points in the current estimate, shape (M, N).
        target_points: Target cloud, shape (K, N).
        target_tree: Optional k-d tree over target_points. When absent, or if
                     it yields nothing, an exhaustive scan is used.

    Returns:
        Matched target points, shape (M, N), one per source point.
        Correspondences are many-to-one: several source points can share
        the same target point.

    Raises:
        NoNearestNeighbourFound: If no candidate exists for some point.
    """
    matches = np.empty_like(transformed_points, dtype=target_points.dtype)
    for idx, point in enumerate(transformed_points):
        nearest = target_tree.nearest(point) if target_tree is not None else None
        if nearest is None:
            nearest = find_nearest_neighbour_naive(point, target_points)
        if nearest is None:
            raise NoNearestNeighbourFound(
                f"no nearest neighbour found for source point {idx}"
            )
        matches[idx] = nearest
    return matches


class _ICPState:
    """Mutable per-run state threaded through icp_iteration."""

    __slots__ = ("transform", "transformed_points", "previous_mse", "centroids")

    def __init__(self, source_points: np.ndarray) -> None:
        self.transform = RigidTransform.identity(source_points.shape[1])
        self.transformed_points = source_points.copy()
        self.previous_mse = float(np.finfo(source_points.dtype).max)
        self.centroids = None


def icp_iteration(
    source_points: np.ndarray,
    target_points: np.ndarray,
    target_tree: Optional[KDTree],
    state: _ICPState,
    config: ICPConfiguration,
) -> Optional[float]:
    """
    Run a single ICP iteration, updating ``state`` in place.

    Args:
        source_points: Original (untransformed) source cloud, shape (M, N).
        target_points: Target cloud, shape (K, N).
        target_tree: k-d tree over target_points, or None.
        state: Accumulated transform, transformed points and previous MSE.
        config: Convergence thresholds.

    Returns:
        The new MSE if this iteration converged, otherwise None.

    Raises:
        NoNearestNeighbourFound: See find_correspondences.
    """
    # Step 1: Correspondences for the current estimate
    matched = find_correspondences(state.transformed_points, target_points, target_tree)

    # Step 2: Cross-covariance and centroids
    M, mean_moved, mean_target = cross_covariance(state.transformed_points, matched)
    state.centroids = (mean_moved, mean_target)

    # Step 3: Updated accumulated transform
    state.transform = update_transform(state.transform, mean_moved, mean_target, M)

    # Step 4: Re-transform the original source points
    state.transformed_points = state.transform.transform_point(source_points)

    # Step 5: MSE against the matches of this iteration
    new_mse = calculate_mse(state.transformed_points, matched)
    logger.debug("New MSE: %g", new_mse)

    # Step 6: Convergence tests
    if (
        config.mse_absolute_threshold is not None
        and new_mse < config.mse_absolute_threshold
    ) or abs(state.previous_mse - new_mse) < config.mse_interval_threshold:
        return new_mse

    state.previous_mse = new_mse
    return None


def icp(
    source_points: np.ndarray,
    target_points: np.ndarray,
    config: Optional[ICPConfiguration] = None,
) -> ICPSuccess:
    """
    Align ``source_points`` to ``target_points`` with point-to-point ICP.

    Args:
        source_points: Source (moving) cloud, shape (M, N) with N in {2, 3}.
        target_points: Target (reference) cloud, shape (K, N).
        config: ICP configuration. Defaults to ICPConfiguration().

    Returns:
        ICPSuccess with the transform mapping the source onto the target,
        the final MSE and the zero-based index of the converging iteration.

    Raises:
        SourceCloudEmpty: If source_points has no points.
        TargetCloudEmpty: If target_points has no points.
        ValueError: If the clouds have different or unsupported dimensions.
        IterationBudgetIsZero, IntervalThresholdTooLow,
        AbsoluteThresholdTooLow: If config is invalid for the cloud's precision.
        NoNearestNeighbourFound: If correspondence search yields nothing.
        DidNotConverge: If max_iterations is exhausted.

    Examples:
        >>> from scanmap.geometry import RigidTransform, UnitComplex
        >>> from scanmap.point_clouds import generate_point_cloud
        >>> source = generate_point_cloud(100, [(-15.0, 15.0)] * 2)
        >>> true = RigidTransform([0.3, -0.2], UnitComplex.from_angle(0.02))
        >>> result = icp(source, true.transform_point(source),
        ...              ICPConfiguration(use_spatial_index=True))
        >>> result.mse < 1e-6
        True

    Notes:
        - The result does not guarantee global alignment, only that another
          iteration would not improve the MSE by more than the threshold.
        - Starts from the identity transform; large initial misalignment can
          lead to a local minimum.
    """
    if config is None:
        config = ICPConfiguration()

    source_points = validate_point_cloud(source_points, "source_points")
    target_points = validate_point_cloud(target_points, "target_points")

    if source_points.shape[0] == 0:
        raise SourceCloudEmpty()
    if target_points.shape[0] == 0:
        raise TargetCloudEmpty()

    if source_points.shape[1] != target_points.shape[1]:
        raise ValueError(
            f"source and target dimensions differ: "
            f"{source_points.shape[1]} vs {target_points.shape[1]}"
        )
    if source_points.shape[1] not in (2, 3):
        raise ValueError(
            f"ICP supports 2D and 3D clouds, got dimension {source_points.shape[1]}"
        )

    if not np.issubdtype(source_points.dtype, np.floating):
        source_points = source_points.astype(np.float64)
    if not np.issubdtype(target_points.dtype, np.floating):
        target_points = target_points.astype(np.float64)

    config.validate(float(np.finfo(source_points.dtype).eps))

    target_tree = KDTree.from_points(target_points) if config.use_spatial_index else None
    state = _ICPState(source_points)

    for iteration_num in range(config.max_iterations):
        logger.debug("Running iteration number %d/%d", iteration_num, config.max_iterations)
        mse = icp_iteration(source_points, target_points, target_tree, state, config)
        if mse is not None:
            logger.debug(
                "Converged after %d iterations with an MSE of %g", iteration_num, mse
            )
            return ICPSuccess(
                transform=state.transform,
                mse=mse,
                iterations_used=iteration_num,
            )

    raise DidNotConverge(
        f"ICP did not converge within {config.max_iterations} iterations "
        f"(last MSE {state.previous_mse:.6g})",
        centroids=state.centroids,
    )
