"""Incremental occupancy mapping with scan-to-scan ICP odometry.

The mapper implements a simple online loop:
    1. (Optional) Voxel-downsample the incoming cloud
    2. Odometry: align the previous cloud to the new one with ICP and
       move the sensor pose accordingly
    3. Ray casting: walk every grid cell between the sensor and each
       detected point, marking traversed cells free and the end cell
       occupied

Registration failures never abort mapping: the pose is left as is and a
RuntimeWarning is emitted.

Key types:
    - MapperConfig: Dataclass configuration with fluent ``with_*`` setters
    - IncrementalMapper: Owns the occupancy grid, pose and frame counter
    - MapperConfigError: Raised when building from an invalid configuration
"""

import dataclasses
import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..geometry import RigidTransform, SimilarityTransform, rotation_type_for_dimension
from ..lines import plot_line
from ..point_clouds import downsample_point_cloud_voxel, validate_point_cloud
from ..registration import ICPConfiguration, ICPError, ICPSuccess, icp
from .grid_map import OccupancyGrid

logger = logging.getLogger(__name__)

MAX_FRAME_INDEX = 255

# Odometry settings used for every scan-to-scan registration
ODOMETRY_ICP_CONFIG = ICPConfiguration(
    use_spatial_index=True,
    max_iterations=20,
    mse_interval_threshold=0.01,
)


class MapperConfigError(ValueError):
    """Invalid or incomplete IncrementalMapper configuration."""


@dataclass
class MapperConfig:
    """
    Configuration of an IncrementalMapper.

    ``dimensions`` and ``calculate_odometry`` are required; everything else
    has a default. Use the ``with_*`` methods to derive updated copies and
    ``build()`` to validate and create the mapper.

    Attributes:
        dimensions: Grid size in cells per axis, 2 or 3 entries.
        calculate_odometry: Whether to run scan-to-scan ICP on new frames.
        resolution: Grid cells per world unit (scale of the sensor pose).
        occupied_confidence_factor: Occupied confidence multiplier (> 1).
        free_confidence_factor: Free confidence multiplier (> 1).
        max_confidence: Upper bound on a cell's log-odds.
        downsample_voxel_size: Voxel size for input downsampling, or None.
        dtype: Floating type of the grid's log-odds.

    Example:
        >>> mapper = (IncrementalMapper.builder()
        ...           .with_dimensions((200, 200))
        ...           .with_calculate_odometry(True)
        ...           .with_resolution(4.0)
        ...           .build())
        >>> mapper.frame_index
        1
    """

    dimensions: Optional[Tuple[int, ...]] = None
    calculate_odometry: Optional[bool] = None
    resolution: float = 1.0
    occupied_confidence_factor: float = 2.5
    free_confidence_factor: float = 2.0
    max_confidence: float = 10.0
    downsample_voxel_size: Optional[float] = None
    dtype: type = np.float64

    def with_dimensions(self, dimensions: Sequence[int]) -> "MapperConfig":
        return dataclasses.replace(self, dimensions=tuple(int(d) for d in dimensions))

    def with_calculate_odometry(self, calculate_odometry: bool) -> "MapperConfig":
        return dataclasses.replace(self, calculate_odometry=bool(calculate_odometry))

    def with_resolution(self, resolution: float) -> "MapperConfig":
        return dataclasses.replace(self, resolution=float(resolution))

    def with_confidence_factors(
        self,
        occupied_confidence_factor: float,
        free_confidence_factor: float,
    ) -> "MapperConfig":
        return dataclasses.replace(
            self,
            occupied_confidence_factor=float(occupied_confidence_factor),
            free_confidence_factor=float(free_confidence_factor),
        )

    def with_max_confidence(self, max_confidence: float) -> "MapperConfig":
        return dataclasses.replace(self, max_confidence=float(max_confidence))

    def with_downsample_voxel_size(self, voxel_size: Optional[float]) -> "MapperConfig":
        return dataclasses.replace(self, downsample_voxel_size=voxel_size)

    def with_dtype(self, dtype) -> "MapperConfig":
        return dataclasses.replace(self, dtype=dtype)

    def validate(self) -> None:
        """
        Check that the configuration can build a mapper.

        Raises:
            MapperConfigError: Listing every missing required field, or
                describing the first invalid value.
        """
        missing = [
            name
            for name in ("dimensions", "calculate_odometry")
            if getattr(self, name) is None
        ]
        if missing:
            raise MapperConfigError(
                f"Missing required mapper configuration: {', '.join(missing)}"
            )

        if len(self.dimensions) not in (2, 3):
            raise MapperConfigError(
                f"Mapping supports 2D and 3D grids, got {len(self.dimensions)} dimensions"
            )
        if any(d <= 0 for d in self.dimensions):
            raise MapperConfigError(
                f"Every grid dimension must be positive, got {self.dimensions}"
            )
        if not self.resolution > 0:
            raise MapperConfigError(f"resolution must be positive, got {self.resolution}")
        if not self.occupied_confidence_factor > 1.0:
            raise MapperConfigError(
                f"occupied_confidence_factor must be greater than 1, "
                f"got {self.occupied_confidence_factor}"
            )
        if not self.free_confidence_factor > 1.0:
            raise MapperConfigError(
                f"free_confidence_factor must be greater than 1, "
                f"got {self.free_confidence_factor}"
            )
        if self.downsample_voxel_size is not None and not self.downsample_voxel_size > 0:
            raise MapperConfigError(
                f"downsample_voxel_size must be positive, got {self.downsample_voxel_size}"
            )

    def build(self) -> "IncrementalMapper":
        self.validate()
        return IncrementalMapper(self)


class IncrementalMapper:
    """
    Online occupancy mapper driven by successive point clouds.

    The sensor pose is a SimilarityTransform from world coordinates to grid
    cells: it starts at the grid centre with identity rotation and a scale
    equal to the resolution. Every new frame is registered against the
    previous cloud to move the pose (if odometry is enabled), then ray cast
    into the grid.

    Attributes:
        config: The validated MapperConfig.
        grid: The OccupancyGrid being updated.
        frame_index: Current frame tag, cycling through 1..=255.
        current_pose: Sensor pose in grid coordinates.
        last_point_cloud: The most recently pushed (downsampled) cloud.
    """

    def __init__(self, config: MapperConfig) -> None:
        config.validate()
        self.config = config

        self.grid = OccupancyGrid(
            config.dimensions,
            occupied_factor=config.occupied_confidence_factor,
            free_factor=config.free_confidence_factor,
            max_confidence=config.max_confidence,
            dtype=config.dtype,
        )

        rotation_type = rotation_type_for_dimension(len(config.dimensions))
        center = np.array(config.dimensions, dtype=np.float64) / 2.0
        self.current_pose = SimilarityTransform(
            RigidTransform(center, rotation_type.identity()),
            config.resolution,
        )
        self.frame_index: int = 1
        self.last_point_cloud: Optional[np.ndarray] = None

    @staticmethod
    def builder() -> MapperConfig:
        """Return an empty MapperConfig to be filled with ``with_*`` calls."""
        return MapperConfig()

    @property
    def dimension(self) -> int:
        return len(self.config.dimensions)

    @property
    def resolution(self) -> float:
        return self.config.resolution

    def get_current_pose(self) -> RigidTransform:
        """Copy of the rigid part of the current sensor pose."""
        return self.current_pose.isometry.copy()

    def push_point_cloud(
        self,
        point_cloud: np.ndarray,
        is_new_frame: bool,
    ) -> Optional[ICPSuccess]:
        """
        Integrate a point cloud into the map.

        Args:
            point_cloud: Points in the sensor frame, shape (M, N) with N
                         equal to the grid dimension.
            is_new_frame: True for the first cloud of a new frame. Odometry
                          only runs and the frame tag only advances on new
                          frames; continuation clouds share the frame tag so
                          their free updates are deduplicated.

        Returns:
            The ICPSuccess used to update the pose, or None if odometry did
            not run or registration failed.

        Raises:
            ValueError: If the cloud does not have shape (M, N).
        """
        point_cloud = validate_point_cloud(point_cloud, "point_cloud")
        if point_cloud.shape[1] != self.dimension:
            raise ValueError(
                f"point_cloud must have {self.dimension} columns, "
                f"got shape {point_cloud.shape}"
            )
        if not np.issubdtype(point_cloud.dtype, np.floating):
            point_cloud = point_cloud.astype(np.float64)

        if self.config.downsample_voxel_size is not None:
            point_cloud = downsample_point_cloud_voxel(
                point_cloud, self.config.downsample_voxel_size
            )

        registration = None
        if self.config.calculate_odometry and is_new_frame and self.last_point_cloud is not None:
            registration = self._update_odometry(point_cloud)

        self.last_point_cloud = point_cloud

        if is_new_frame:
            self.frame_index = 1 if self.frame_index >= MAX_FRAME_INDEX else self.frame_index + 1

        self._cast_rays(point_cloud)
        return registration

    def _update_odometry(self, point_cloud: np.ndarray) -> Optional[ICPSuccess]:
        try:
            result = icp(self.last_point_cloud, point_cloud, ODOMETRY_ICP_CONFIG)
        except ICPError as e:
            warnings.warn(
                f"Scan-to-scan registration failed, keeping previous pose: {e}",
                RuntimeWarning,
            )
            return None

        # Added unscaled, as for the rotation: with resolution != 1 the pose
        # advances by world units in cell coordinates
        self.current_pose.append_translation(result.transform.translation)
        self.current_pose.append_rotation_wrt_center(result.transform.rotation)
        logger.debug(
            "Odometry update: mse=%g, iterations=%d, pose=%r",
            result.mse,
            result.iterations_used,
            self.current_pose,
        )
        return result

    def _cast_rays(self, point_cloud: np.ndarray) -> None:
        # Floor to the containing cell, so (-1, 0) maps to cell -1 and is dropped
        origin = np.floor(self.current_pose.translation)
        grid_points = np.floor(self.current_pose.transform_point(point_cloud))

        for grid_point in grid_points:
            cells = plot_line(origin, grid_point)
            for cell in cells[:-1]:
                self.grid.free_update(cell, self.frame_index)
            self.grid.occupied_update(cells[-1], self.frame_index)
