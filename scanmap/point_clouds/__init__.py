"""Point-cloud utilities: centroid, naive nearest neighbour, transforms,
voxel downsampling and deterministic generation."""

from .downsample import downsample_point_cloud_voxel
from .generate import DEFAULT_SEED, generate_point_cloud
from .utils import (
    calculate_point_cloud_center,
    find_nearest_neighbour_naive,
    transform_point_cloud,
    validate_point_cloud,
)

__all__ = [
    "calculate_point_cloud_center",
    "find_nearest_neighbour_naive",
    "transform_point_cloud",
    "validate_point_cloud",
    "downsample_point_cloud_voxel",
    "generate_point_cloud",
    "DEFAULT_SEED",
]
