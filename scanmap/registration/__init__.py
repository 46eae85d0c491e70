"""Point-cloud registration: SVD alignment and ICP.

Main components:
    - cross_covariance, estimate_rotation, update_transform: closed-form
      rigid alignment of matched point sets
    - icp: iterative closest point with k-d tree or exhaustive matching
    - ICPConfiguration, ICPSuccess: configuration and result types
    - ICPError and subclasses: failure taxonomy

Example usage:
    >>> from scanmap.registration import ICPConfiguration, icp
    >>> config = ICPConfiguration(use_spatial_index=True, max_iterations=50)
    >>> # result = icp(previous_scan, current_scan, config)
"""

from .alignment import cross_covariance, estimate_rotation, update_transform
from .icp import calculate_mse, find_correspondences, icp, icp_iteration
from .types import (
    AbsoluteThresholdTooLow,
    DidNotConverge,
    ICPConfiguration,
    ICPError,
    ICPSuccess,
    IntervalThresholdTooLow,
    IterationBudgetIsZero,
    NoNearestNeighbourFound,
    SourceCloudEmpty,
    TargetCloudEmpty,
)

__all__ = [
    # Alignment
    "cross_covariance",
    "estimate_rotation",
    "update_transform",
    # ICP
    "calculate_mse",
    "find_correspondences",
    "icp_iteration",
    "icp",
    # Types
    "ICPConfiguration",
    "ICPSuccess",
    # Errors
    "ICPError",
    "SourceCloudEmpty",
    "TargetCloudEmpty",
    "IterationBudgetIsZero",
    "IntervalThresholdTooLow",
    "AbsoluteThresholdTooLow",
    "NoNearestNeighbourFound",
    "DidNotConverge",
]
