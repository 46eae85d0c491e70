"""Configuration, result and error types for ICP registration.

Key types:
    - ICPConfiguration: Behaviour of the ICP loop (validated on construction)
    - ICPSuccess: Transform, MSE and iteration index of a converged run
    - ICPError and subclasses: Every way a registration can fail
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..geometry import RigidTransform


class ICPError(Exception):
    """Base class for registration failures."""


class SourceCloudEmpty(ICPError, ValueError):
    """The source (moving) point cloud has no points."""

    def __init__(self, message: str = "source point cloud is empty") -> None:
        super().__init__(message)


class TargetCloudEmpty(ICPError, ValueError):
    """The target (reference) point cloud has no points."""

    def __init__(self, message: str = "target point cloud is empty") -> None:
        super().__init__(message)


class IterationBudgetIsZero(ICPError, ValueError):
    """max_iterations is 0, so no iteration could ever run."""

    def __init__(self, message: str = "max_iterations must be greater than 0") -> None:
        super().__init__(message)


class IntervalThresholdTooLow(ICPError, ValueError):
    """mse_interval_threshold is at or below machine epsilon."""


class AbsoluteThresholdTooLow(ICPError, ValueError):
    """mse_absolute_threshold is NaN or at or below machine epsilon."""


class NoNearestNeighbourFound(ICPError):
    """Correspondence search returned nothing for a source point."""

    def __init__(self, message: str = "no nearest neighbour found in target cloud") -> None:
        super().__init__(message)


class DidNotConverge(ICPError):
    """
    The iteration budget was exhausted without meeting either convergence test.

    Attributes:
        centroids: (mean of transformed source, mean of matched target points)
                   from the last iteration, for diagnostics. None if unknown.
    """

    def __init__(
        self,
        message: str = "ICP did not converge",
        centroids: Optional[Tuple[np.ndarray, np.ndarray]] = None,
    ) -> None:
        super().__init__(message)
        self.centroids = centroids


@dataclass(frozen=True)
class ICPConfiguration:
    """
    Configuration of an ICP run.

    Attributes:
        use_spatial_index: Find nearest neighbours with a k-d tree built from
                           the target cloud instead of an exhaustive scan.
                           Pays off as clouds grow.
        max_iterations: Iteration budget before giving up (must be > 0).
        mse_absolute_threshold: If set, converge as soon as the MSE drops
                                below this value.
        mse_interval_threshold: Converge when the MSE changes by less than
                                this value between two iterations.

    Raises:
        IterationBudgetIsZero: If max_iterations is 0.
        IntervalThresholdTooLow: If mse_interval_threshold <= float64 epsilon.
        AbsoluteThresholdTooLow: If mse_absolute_threshold is NaN or
                                 <= float64 epsilon.

    Examples:
        >>> config = ICPConfiguration(use_spatial_index=True, max_iterations=50)
        >>> config.mse_interval_threshold
        0.01
    """

    use_spatial_index: bool = False
    max_iterations: int = 20
    mse_absolute_threshold: Optional[float] = None
    mse_interval_threshold: float = 0.01

    def __post_init__(self) -> None:
        """Validate thresholds after initialization."""
        self.validate()

    def validate(self, epsilon: Optional[float] = None) -> None:
        """
        Check the configuration against the epsilon of a given precision.

        Args:
            epsilon: Machine epsilon of the scalar type in use.
                     Defaults to float64 epsilon.

        Raises:
            IterationBudgetIsZero, IntervalThresholdTooLow,
            AbsoluteThresholdTooLow: See class docstring.
        """
        if epsilon is None:
            epsilon = float(np.finfo(np.float64).eps)

        if self.max_iterations <= 0:
            raise IterationBudgetIsZero(
                f"max_iterations must be greater than 0, got {self.max_iterations}"
            )

        if not self.mse_interval_threshold > epsilon:
            raise IntervalThresholdTooLow(
                f"mse_interval_threshold must exceed {epsilon:g}, "
                f"got {self.mse_interval_threshold}"
            )

        if self.mse_absolute_threshold is not None and not self.mse_absolute_threshold > epsilon:
            raise AbsoluteThresholdTooLow(
                f"mse_absolute_threshold must exceed {epsilon:g}, "
                f"got {self.mse_absolute_threshold}"
            )


@dataclass(frozen=True)
class ICPSuccess:
    """
    Result of a converged ICP run.

    Attributes:
        transform: Rigid transform mapping the source cloud onto the target.
        mse: Mean squared distance between transformed source points and
             their matched target points at convergence.
        iterations_used: Zero-based index of the iteration that converged.
    """

    transform: RigidTransform
    mse: float
    iterations_used: int

    def __repr__(self) -> str:
        return (
            f"ICPSuccess(transform={self.transform!r}, mse={self.mse:.6g}, "
            f"iterations_used={self.iterations_used})"
        )
